"""Branding constants for terminal output."""

from __future__ import annotations

BRAND_NAME: str = "VULNZAP"
ASCII_LOGO_LINES: tuple[str, ...] = (
    ">_ VULNZAP",
    "     // vulnerability scans from your terminal",
)
CLI_DESCRIPTION: str = "\n".join((*ASCII_LOGO_LINES, "", f"{BRAND_NAME} scan client"))
