"""Exceptions raised by the stream ingestion pipeline."""

from __future__ import annotations


class StreamFailedError(RuntimeError):
    """The byte source failed before the stream completed. No document."""


class IngestionStateError(RuntimeError):
    """An operation was attempted in the wrong lifecycle state."""
