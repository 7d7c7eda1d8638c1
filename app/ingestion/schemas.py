"""
Pydantic models for the finalized portfolio document.

These are the only types the presentation layer sees. Everything here has
already passed through ``app.ingestion.quality``; field names are snake_case
in Python and camelCase on the wire (``colorTheme``, ``customNodes`` …).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Enums ────────────────────────────────────────────────────────────────

class NodeKind(str, Enum):
    MARKUP = "markup"
    PLAIN_TEXT = "plainText"
    STAT_BLOCK = "statBlock"
    COMPONENT_REF = "componentRef"


# Wire spellings used by the generator's tool schema.
NODE_KIND_ALIASES: dict[str, NodeKind] = {
    "html": NodeKind.MARKUP,
    "text": NodeKind.PLAIN_TEXT,
    "stat": NodeKind.STAT_BLOCK,
    "react-component": NodeKind.COMPONENT_REF,
    **{kind.value: kind for kind in NodeKind},
}


# ── Document parts ───────────────────────────────────────────────────────

class Social(_CamelModel):
    platform: str
    url: str


class Stat(_CamelModel):
    label: str
    value: str


class CustomNode(_CamelModel):
    """One extra bento cell: span dimensions plus a content kind.

    ``content`` is opaque. Markup is never interpreted here; the renderer
    must sanitise it before display.
    """

    col_span: int
    row_span: int
    kind: NodeKind
    content: str | None = None
    component_name: str | None = None
    component_props: dict[str, Any] = Field(default_factory=dict)
    component_children: str | None = None


class Document(_CamelModel):
    """A validated, presentation-ready portfolio."""

    name: str
    title: str
    bio: str
    skills: list[str]
    socials: list[Social] = Field(default_factory=list)
    stats: list[Stat]
    color_theme: str
    custom_nodes: list[CustomNode] = Field(default_factory=list)
    hero_image: str


# ── Helpers ──────────────────────────────────────────────────────────────

def document_to_dict(document: Document) -> dict[str, Any]:
    """Serialise with camelCase keys for the presentation layer."""
    return document.model_dump(mode="json", by_alias=True)
