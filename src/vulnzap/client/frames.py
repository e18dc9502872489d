"""Line framing and classification for the scan event stream."""

from __future__ import annotations

import json
from dataclasses import dataclass

from vulnzap.constants.events import (
    EVENT_COMPLETED,
    EVENT_ERROR,
    EVENT_UPDATE,
    FRAME_DATA_PREFIX,
    FRAME_TYPE_COMPLETED,
    FRAME_TYPE_ERROR,
    UPDATE_FRAME_TYPES,
)
from vulnzap.exceptions import FrameParseError
from vulnzap.types import EventKind, JsonObject


class FrameDecoder:
    """Accumulate text chunks and release complete ``data:`` payloads.

    A frame split across two reads stays buffered until its newline arrives.
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete line."""
        return self._buffer

    def feed(self, chunk: str) -> list[str]:
        """Add ``chunk`` and return the data payloads of every completed line."""
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        payloads: list[str] = []
        for line in lines:
            line = line.removesuffix("\r")
            if line.startswith(FRAME_DATA_PREFIX):
                payloads.append(line[len(FRAME_DATA_PREFIX) :])
        return payloads


def parse_frame(data: str) -> JsonObject:
    """Decode one frame payload and apply the ``scanId`` to ``jobId`` promotion."""
    try:
        frame = json.loads(data)
    except json.JSONDecodeError as exc:
        raise FrameParseError(f"invalid JSON in event frame: {exc}", line=data) from exc
    if not isinstance(frame, dict):
        raise FrameParseError("event frame must be a JSON object", line=data)
    return normalize_job_id(frame)


def normalize_job_id(frame: JsonObject) -> JsonObject:
    """Rename the legacy ``scanId`` field so callers only ever see ``jobId``."""
    if frame.get("scanId") and not frame.get("jobId"):
        frame["jobId"] = frame.pop("scanId")
    return frame


@dataclass(frozen=True)
class FrameClassification:
    """Public event kind for a frame, and whether it ends the stream."""

    kind: EventKind
    terminal: bool = False
    known: bool = True


def classify_frame(frame: JsonObject) -> FrameClassification:
    """Map a frame's ``type`` to the event it produces."""
    frame_type = frame.get("type")
    if not isinstance(frame_type, str):
        return FrameClassification(kind=EVENT_ERROR, known=False)
    if frame_type == FRAME_TYPE_COMPLETED:
        return FrameClassification(kind=EVENT_COMPLETED, terminal=True)
    if frame_type in UPDATE_FRAME_TYPES:
        return FrameClassification(kind=EVENT_UPDATE)
    if frame_type == FRAME_TYPE_ERROR:
        return FrameClassification(kind=EVENT_ERROR)
    return FrameClassification(kind=EVENT_ERROR, known=False)
