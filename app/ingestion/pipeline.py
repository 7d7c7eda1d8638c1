"""
End-to-end stream ingestion orchestrator.

Wires together: line framing → event parsing → state reduction → quality
gates / finalize.

Designed for:
- One ``StreamIngestion`` per stream, created fresh and never reused.
- Strict arrival order: each chunk is processed fully before the next one
  is awaited, so the pipeline never reads ahead.
- Live observation (narration so far, diagnostics, counters) while the
  generator is still running.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterable, Callable, Iterable, Union

from app.ingestion.config import IngestSettings, ingest_settings
from app.ingestion.errors import IngestionStateError, StreamFailedError
from app.ingestion.events import (
    Event,
    ImageResult,
    Malformed,
    Narration,
    StructuredResult,
    parse_lines,
)
from app.ingestion.framing import LineDecoder
from app.ingestion.quality import finalize
from app.ingestion.schemas import Document
from app.ingestion.state import PartialDocumentState, apply_event

logger = logging.getLogger(__name__)

ByteSource = AsyncIterable[Union[bytes, str]]


class IngestionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TERMINAL = (IngestionStatus.COMPLETED, IngestionStatus.FAILED, IngestionStatus.CANCELLED)


@dataclass
class IngestionStats:
    """Counters for a single stream."""

    chunks: int = 0
    lines: int = 0
    narration_chunks: int = 0
    images: int = 0
    structured_payloads: int = 0
    malformed: int = 0
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class IngestionProgress:
    """Read-only view handed to progress observers after every chunk."""

    status: IngestionStatus
    narration: str
    chunks: int
    malformed: int
    image_received: bool
    structured_received: bool


ProgressCallback = Callable[[IngestionProgress], None]


class StreamIngestion:
    """Assemble one portfolio ``Document`` from one NDJSON stream."""

    def __init__(self, fallback_image: str, *, settings: IngestSettings | None = None) -> None:
        self._settings = settings or ingest_settings
        self._fallback_image = fallback_image
        self._decoder = LineDecoder(self._settings.encoding)
        self._state = PartialDocumentState()
        self._diagnostics: list[Malformed] = []
        self._status = IngestionStatus.PENDING
        self._document: Document | None = None
        self._t0 = time.time()
        self._released = False
        self.stats = IngestionStats()

    # ── Observation ──────────────────────────────────────────────────────

    @property
    def status(self) -> IngestionStatus:
        return self._status

    @property
    def state(self) -> PartialDocumentState:
        """Frozen snapshot of the reduced state."""
        return self._state

    @property
    def narration(self) -> str:
        return self._state.narration_text

    @property
    def diagnostics(self) -> tuple[Malformed, ...]:
        return tuple(self._diagnostics)

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def released(self) -> bool:
        return self._released

    def progress(self) -> IngestionProgress:
        return IngestionProgress(
            status=self._status,
            narration=self.narration,
            chunks=self.stats.chunks,
            malformed=self.stats.malformed,
            image_received=self._state.latest_image is not None,
            structured_received=self._state.latest_payload is not None,
        )

    # ── Processing ───────────────────────────────────────────────────────

    def feed(self, chunk: bytes | str) -> list[Event]:
        """Process one raw chunk completely. Returns the events it produced."""
        self._require_open()
        self._status = IngestionStatus.RUNNING
        self.stats.chunks += 1

        lines = self._decoder.feed(chunk)
        limit = self._settings.max_pending_chars
        if limit and self._decoder.pending_size > limit:
            raise self._fail(f"pending line exceeds {limit} characters")
        return self._ingest_lines(lines)

    def complete(self) -> Document:
        """Flush the residual line and finalize. Allowed exactly once."""
        self._require_open()
        residual = self._decoder.flush()
        if residual is not None:
            self._ingest_lines([residual])

        self._document = finalize(self._state, self._fallback_image)
        self._status = IngestionStatus.COMPLETED
        self.stats.elapsed_seconds = time.time() - self._t0
        logger.info(
            "Stream complete: %d chunks, %d lines, %d structured payloads, "
            "%d malformed in %.1fs.",
            self.stats.chunks,
            self.stats.lines,
            self.stats.structured_payloads,
            self.stats.malformed,
            self.stats.elapsed_seconds,
        )
        if self._state.latest_payload is None:
            logger.warning("Stream ended without a structured payload – using defaults.")
        return self._document

    def cancel(self) -> None:
        """Abandon the stream. No document will be produced."""
        if self._status not in _TERMINAL:
            self._status = IngestionStatus.CANCELLED
            logger.info("Stream cancelled after %d chunks.", self.stats.chunks)

    async def release(self, source: ByteSource) -> None:
        """Close *source* once, if it can be closed."""
        if self._released:
            return
        self._released = True
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def consume(
        self,
        source: ByteSource,
        on_progress: ProgressCallback | None = None,
    ) -> Document:
        """Drive the whole stream from *source* and return the document.

        Raises:
            StreamFailedError: the source failed before completing.
            IngestionStateError: the session was cancelled or already used.
        """
        try:
            self._require_open()
            iterator = source.__aiter__()
            while True:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as exc:
                    raise self._fail(f"byte source failed: {exc}") from exc

                self.feed(chunk)
                if on_progress is not None:
                    on_progress(self.progress())
        except asyncio.CancelledError:
            self.cancel()
            raise
        finally:
            await self.release(source)

        return self.complete()

    # ── Internals ────────────────────────────────────────────────────────

    def _ingest_lines(self, lines: Iterable[str]) -> list[Event]:
        lines = list(lines)
        self.stats.lines += len(lines)
        events = parse_lines(lines)

        for event in events:
            self._state = apply_event(self._state, event)
            if isinstance(event, Narration):
                self.stats.narration_chunks += 1
            elif isinstance(event, ImageResult):
                self.stats.images += 1
            elif isinstance(event, StructuredResult):
                self.stats.structured_payloads += 1
            elif isinstance(event, Malformed):
                self.stats.malformed += 1
                self._diagnostics.append(event)
                logger.warning("Malformed stream line (%s): %s", event.reason, event.raw_line[:120])
        return events

    def _require_open(self) -> None:
        if self._status in _TERMINAL:
            raise IngestionStateError(f"Stream is already {self._status.value}.")

    def _fail(self, reason: str) -> StreamFailedError:
        self._status = IngestionStatus.FAILED
        self.stats.elapsed_seconds = time.time() - self._t0
        logger.error("Stream failed after %d chunks: %s", self.stats.chunks, reason)
        return StreamFailedError(reason)


# ═══════════════════════════════════════════════════════════════════════════
# Entry points
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class IngestionHandle:
    """A running ingestion: live session plus the task that resolves it."""

    session: StreamIngestion
    task: asyncio.Task
    source: ByteSource
    _release_task: asyncio.Task | None = field(default=None, init=False, repr=False)

    async def result(self) -> Document:
        return await self.task

    def cancel(self) -> None:
        self.session.cancel()
        self.task.cancel()

    def done(self) -> bool:
        return self.task.done()

    def _release_if_cancelled(self, task: asyncio.Task) -> None:
        # A task cancelled before its first step never reaches consume's finally.
        if task.cancelled() and not self.session.released:
            self._release_task = asyncio.get_running_loop().create_task(
                self.session.release(self.source)
            )


def start(
    source: ByteSource,
    fallback_image: str,
    *,
    on_progress: ProgressCallback | None = None,
    settings: IngestSettings | None = None,
) -> IngestionHandle:
    """Schedule ingestion of *source* on the running event loop."""
    session = StreamIngestion(fallback_image, settings=settings)
    loop = asyncio.get_running_loop()
    task = loop.create_task(session.consume(source, on_progress))
    handle = IngestionHandle(session=session, task=task, source=source)
    task.add_done_callback(handle._release_if_cancelled)
    return handle


async def ingest_stream(
    source: ByteSource,
    fallback_image: str,
    *,
    on_progress: ProgressCallback | None = None,
) -> StreamIngestion:
    """Consume *source* to completion and return the finished session."""
    session = StreamIngestion(fallback_image)
    await session.consume(source, on_progress)
    return session
