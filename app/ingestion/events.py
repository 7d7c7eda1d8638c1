"""
Typed events parsed from the NDJSON wire records.

Each line of the stream is a self-contained record::

    {"type": "chunk" | "image" | "data", "content": ...}

``parse_line`` never raises: anything that cannot be classified becomes a
``Malformed`` event so the stream keeps flowing.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict


# ── Event types ──────────────────────────────────────────────────────────

class Narration(BaseModel):
    """A fragment of the model's free-form thinking text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["narration-chunk"] = "narration-chunk"
    text: str


class ImageResult(BaseModel):
    """A data-URI encoded image; supersedes any earlier one."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["final-image"] = "final-image"
    encoded_image: str


class StructuredResult(BaseModel):
    """A complete candidate portfolio payload (untyped until finalize)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["final-structured-data"] = "final-structured-data"
    payload: dict[str, Any]


class Malformed(BaseModel):
    """A line that could not be classified. Diagnostic only."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["malformed"] = "malformed"
    raw_line: str
    reason: str


Event = Union[Narration, ImageResult, StructuredResult, Malformed]

UNKNOWN_KIND = "unknown event kind"


# ── Parsing ──────────────────────────────────────────────────────────────

def parse_line(line: str) -> Event:
    """Classify one complete line as an ``Event``."""
    try:
        record = json.loads(line)
    except (ValueError, RecursionError) as exc:
        return Malformed(raw_line=line, reason=f"invalid JSON: {exc}")

    if not isinstance(record, dict):
        return Malformed(raw_line=line, reason="record is not a JSON object")

    event_type = record.get("type")
    if not isinstance(event_type, str):
        return Malformed(raw_line=line, reason="missing event type")

    content = record.get("content")
    if event_type == "chunk":
        if isinstance(content, str):
            return Narration(text=content)
    elif event_type == "image":
        if isinstance(content, str):
            return ImageResult(encoded_image=content)
    elif event_type == "data":
        if isinstance(content, dict):
            return StructuredResult(payload=content)
    else:
        return Malformed(raw_line=line, reason=f"{UNKNOWN_KIND}: {event_type}")

    return Malformed(raw_line=line, reason=f"invalid content for '{event_type}' event")


def parse_lines(lines: Iterable[str]) -> list[Event]:
    """Parse lines in order, skipping blank ones."""
    return [parse_line(line) for line in lines if line.strip()]
