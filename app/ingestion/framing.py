"""
Line framing for the NDJSON event stream.

Network chunks never line up with record boundaries: a record can be split
across several chunks and a single chunk can carry several records. The
``LineDecoder`` buffers the trailing fragment until its newline arrives.
Bytes are decoded incrementally so a multi-byte character that straddles a
chunk edge is reassembled instead of being replaced.
"""

from __future__ import annotations

import codecs

from app.ingestion.config import ingest_settings

DELIMITER = "\n"


class LineDecoder:
    """Turn an arbitrary chunk sequence into complete lines.

    One instance per stream. The pending buffer is reset only at
    construction.
    """

    def __init__(self, encoding: str | None = None) -> None:
        decoder_cls = codecs.getincrementaldecoder(encoding or ingest_settings.encoding)
        self._decoder = decoder_cls(errors="replace")
        self._pending = ""

    @property
    def pending_size(self) -> int:
        return len(self._pending)

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk and return the lines it completed (maybe none)."""
        if isinstance(chunk, str):
            text = chunk
        else:
            text = self._decoder.decode(bytes(chunk))
        if not text:
            return []

        pieces = (self._pending + text).split(DELIMITER)
        self._pending = pieces.pop()
        return pieces

    def flush(self) -> str | None:
        """Return the unterminated residual at stream end, if it has content."""
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not tail.strip():
            return None
        return tail
