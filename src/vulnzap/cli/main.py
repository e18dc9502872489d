"""CLI entrypoint for the VulnZap client."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from vulnzap import __version__
from vulnzap.cache import ScanCache
from vulnzap.client.coordinator import VulnzapClient
from vulnzap.config import ClientConfig, load_config
from vulnzap.constants.branding import CLI_DESCRIPTION
from vulnzap.constants.events import EVENT_COMPLETED, EVENT_KINDS
from vulnzap.constants.watcher import MAX_SESSION_TIMEOUT_MS, MIN_SESSION_TIMEOUT_MS
from vulnzap.exceptions import ConfigError, VulnzapError
from vulnzap.model import CommitScanRequest, RepositoryScanRequest, ScanInitResponse, ScannedFile
from vulnzap.types import JsonObject


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vulnzap",
        description=CLI_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", type=Path, help="Explicit config file (default: ./vulnzap.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    commit = subparsers.add_parser("scan-commit", help="Scan the files of a single commit")
    commit.add_argument("-r", "--repository", required=True, help="Repository identifier, e.g. owner/repo")
    commit.add_argument("-C", "--commit", required=True, help="Commit hash")
    commit.add_argument("-b", "--branch", default=None, help="Branch name")
    commit.add_argument("-u", "--user", default=None, help="User identifier sent with the scan")
    commit.add_argument("--no-wait", action="store_true", help="Return once the scan is accepted")
    commit.add_argument("files", nargs="+", type=Path, help="Files to include in the scan")

    repo = subparsers.add_parser("scan-repo", help="Scan a full repository snapshot")
    repo.add_argument("-r", "--repository", required=True, help="Repository identifier, e.g. owner/repo")
    repo.add_argument("-b", "--branch", default=None, help="Branch name")
    repo.add_argument("-u", "--user", default=None, help="User identifier sent with the scan")
    repo.add_argument("--no-wait", action="store_true", help="Return once the scan is accepted")

    status = subparsers.add_parser("status", help="Fetch the authoritative state of a job")
    status.add_argument("job_id", help="Job identifier returned when the scan started")

    latest = subparsers.add_parser("latest", help="Show the newest cached commit scan of a repository")
    latest.add_argument("-r", "--repository", required=True, help="Repository identifier")

    assistant = subparsers.add_parser("assistant", help="Watch a directory and scan changes incrementally")
    assistant.add_argument("-d", "--dir", type=Path, required=True, help="Directory to watch")
    assistant.add_argument("-s", "--session", required=True, help="Session identifier")
    assistant.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=60_000,
        help=f"Idle timeout in ms ({MIN_SESSION_TIMEOUT_MS}-{MAX_SESSION_TIMEOUT_MS}, default: 60000)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")

    try:
        config = load_config(config_path=args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    if args.command == "latest":
        return _handle_latest(config, args.repository)

    try:
        return asyncio.run(_dispatch(config, args))
    except VulnzapError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


async def _dispatch(config: ClientConfig, args: argparse.Namespace) -> int:
    async with VulnzapClient(config) as client:
        if args.command == "scan-commit":
            request = CommitScanRequest(
                commit_hash=args.commit,
                repository=args.repository,
                files=tuple(_read_scanned_file(path) for path in args.files),
                branch=args.branch,
                user_identifier=args.user,
            )
            _print_events(client)
            response = await client.scan_commit(request)
            return await _finish_scan(client, response, wait=not args.no_wait)

        if args.command == "scan-repo":
            repo_request = RepositoryScanRequest(
                repository=args.repository,
                branch=args.branch,
                user_identifier=args.user,
            )
            _print_events(client)
            response = await client.scan_repository(repo_request)
            return await _finish_scan(client, response, wait=not args.no_wait)

        if args.command == "status":
            result = await client.get_completed_scan(args.job_id)
            _print_json(result.raw)
            return 0

        if args.command == "assistant":
            return await _run_assistant(client, args.dir, args.session, args.timeout)

    raise ValueError(f"Unsupported command: {args.command}")


def _handle_latest(config: ClientConfig, repository: str) -> int:
    entry = ScanCache(config.cache_dir).latest_commit_scan(repository)
    if entry is None:
        print(f"No cached commit scan for {repository}", file=sys.stderr)
        return 1
    _print_json(dict(entry.to_payload()))
    return 0


async def _finish_scan(client: VulnzapClient, response: ScanInitResponse, *, wait: bool) -> int:
    _print_json(response.to_dict())
    if wait:
        await client.wait_for_job(response.data.job_id)
    return 0


async def _run_assistant(client: VulnzapClient, directory: Path, session_id: str, timeout_ms: int) -> int:
    closed = asyncio.Event()

    def on_completed(payload: JsonObject) -> None:
        if payload.get("jobId") == session_id:
            closed.set()

    _print_events(client)
    client.on(EVENT_COMPLETED, on_completed)
    if not client.security_assistant(directory, session_id, timeout_ms):
        print("Security assistant could not start; check the directory and timeout", file=sys.stderr)
        return 2

    await closed.wait()
    results = await client.get_incremental_scan_results(session_id)
    _print_json(dict(results))
    return 0 if results["success"] else 1


def _read_scanned_file(path: Path) -> ScannedFile:
    return ScannedFile(name=path.as_posix(), content=path.read_text(encoding="utf-8", errors="replace"))


def _print_events(client: VulnzapClient) -> None:
    for kind in sorted(EVENT_KINDS):
        client.on(kind, lambda payload, kind=kind: _print_json({"event": kind, "payload": payload}))


def _print_json(payload: JsonObject) -> None:
    print(json.dumps(payload, sort_keys=True, default=str), flush=True)


if __name__ == "__main__":
    raise SystemExit(main())
