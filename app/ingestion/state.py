"""
Incremental document state and the reducer that folds events into it.

The state is frozen: ``apply_event`` always returns a new value, so any
snapshot handed to a consumer stays consistent while reduction continues.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict

from app.ingestion.events import (
    Event,
    ImageResult,
    Narration,
    StructuredResult,
)

logger = logging.getLogger(__name__)


class PartialDocumentState(BaseModel):
    """Everything received so far for one stream."""

    model_config = ConfigDict(frozen=True)

    narration: tuple[str, ...] = ()
    latest_image: str | None = None
    latest_payload: dict[str, Any] | None = None

    @property
    def narration_text(self) -> str:
        return "".join(self.narration)


def apply_event(state: PartialDocumentState, event: Event) -> PartialDocumentState:
    """Return the state after *event*. Pure and total."""
    if isinstance(event, Narration):
        return state.model_copy(update={"narration": state.narration + (event.text,)})

    if isinstance(event, ImageResult):
        return state.model_copy(update={"latest_image": event.encoded_image})

    if isinstance(event, StructuredResult):
        # Payloads are atomic: a later one replaces, never merges.
        if state.latest_payload is not None:
            logger.info("Structured payload superseded by a later one.")
        return state.model_copy(update={"latest_payload": event.payload})

    # Malformed events are diagnostics only.
    return state


def reduce_events(
    events: Iterable[Event],
    state: PartialDocumentState | None = None,
) -> PartialDocumentState:
    """Fold *events* into *state* (an empty state by default)."""
    if state is None:
        state = PartialDocumentState()
    for event in events:
        state = apply_event(state, event)
    return state
