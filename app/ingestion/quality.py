"""
Quality gates and normalisation for the assembled portfolio.

The structured payload arrives as an untyped JSON tree. Nothing in it is
trusted: each field is checked here, invalid values are replaced by
defaults and invalid custom nodes are dropped. ``finalize`` is total, so a
``Document`` can be produced even from an empty stream.

Each node gate is a pure function: raw node → (node | None, reason).
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from app.ingestion.config import ingest_settings
from app.ingestion.schemas import (
    NODE_KIND_ALIASES,
    CustomNode,
    Document,
    NodeKind,
    Social,
    Stat,
)
from app.ingestion.state import PartialDocumentState

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


# ═══════════════════════════════════════════════════════════════════════════
# Scalar helpers
# ═══════════════════════════════════════════════════════════════════════════

def _text(value: Any) -> str | None:
    """Return *value* stripped if it is a string with visible content."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def clamp_span(value: Any, low: int, high: int) -> int:
    """Clamp a span to ``[low, high]``; non-numbers fall back to *low*."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return low
    if isinstance(value, float) and not math.isfinite(value):
        return low
    return max(low, min(high, int(round(value))))


def normalize_color(value: Any) -> str:
    if isinstance(value, str) and _HEX_COLOR.match(value.strip()):
        return value.strip()
    return ingest_settings.default_color_theme


# ═══════════════════════════════════════════════════════════════════════════
# List fields
# ═══════════════════════════════════════════════════════════════════════════

def normalize_skills(value: Any) -> list[str]:
    skills = [_text(s) for s in value if _text(s)] if isinstance(value, list) else []
    return skills or list(ingest_settings.default_skills)


def normalize_socials(value: Any) -> list[Social]:
    if not isinstance(value, list):
        return []
    socials: list[Social] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        platform, url = _text(item.get("platform")), _text(item.get("url"))
        if platform and url:
            socials.append(Social(platform=platform, url=url))
    return socials


def normalize_stats(value: Any) -> list[Stat]:
    """Keep well-formed stats and pad so indexes 0 and 1 always exist."""
    stats: list[Stat] = []
    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict):
            continue
        label, raw_value = _text(item.get("label")), item.get("value")
        if isinstance(raw_value, bool):
            continue
        if isinstance(raw_value, (int, float)):
            raw_value = str(raw_value)
        shown = _text(raw_value)
        if label and shown:
            stats.append(Stat(label=label, value=shown))

    defaults = ingest_settings.default_stats
    for fallback in defaults[len(stats):]:
        stats.append(Stat(**fallback))
    return stats


# ═══════════════════════════════════════════════════════════════════════════
# Custom nodes
# ═══════════════════════════════════════════════════════════════════════════

def _resolve_image_props(
    component: str, props: dict[str, Any], hero_image: str
) -> dict[str, Any]:
    """Swap the generator's image placeholder for the real hero image."""
    token = ingest_settings.image_placeholder_token
    if props.get("imageSrc") == token or (component == "TiltedCard" and not props.get("imageSrc")):
        return {**props, "imageSrc": hero_image}
    return props


def validate_custom_node(raw: Any, hero_image: str = "") -> tuple[CustomNode | None, str]:
    """Validate one raw custom node. Returns the node or ``None`` with a reason."""
    if not isinstance(raw, dict):
        return None, "Not an object"

    raw_kind = _first(raw, "type", "kind")
    kind = NODE_KIND_ALIASES.get(raw_kind) if isinstance(raw_kind, str) else None
    if kind is None:
        return None, f"Unknown node kind ({raw_kind!r})"

    col_span = clamp_span(
        raw.get("colSpan"), ingest_settings.min_col_span, ingest_settings.max_col_span
    )
    row_span = clamp_span(
        raw.get("rowSpan"), ingest_settings.min_row_span, ingest_settings.max_row_span
    )
    content = _text(raw.get("content"))

    if kind != NodeKind.COMPONENT_REF:
        if content is None:
            return None, f"Missing content for {kind.value} node"
        return CustomNode(col_span=col_span, row_span=row_span, kind=kind, content=content), "OK"

    component = _text(_first(raw, "component", "componentName"))
    if component is None:
        return None, "Missing component name"
    if component not in ingest_settings.known_components:
        return None, f"Unknown component ({component})"

    props = _first(raw, "props", "componentProps")
    props = props if isinstance(props, dict) else {}
    children = _first(raw, "children", "componentChildren")

    return CustomNode(
        col_span=col_span,
        row_span=row_span,
        kind=kind,
        content=content,
        component_name=component,
        component_props=_resolve_image_props(component, props, hero_image),
        component_children=children if isinstance(children, str) else None,
    ), "OK"


def filter_custom_nodes(raw_nodes: Any, hero_image: str = "") -> list[CustomNode]:
    """Apply the node gate to a list, returning only valid nodes."""
    if not isinstance(raw_nodes, list):
        return []

    passed: list[CustomNode] = []
    rejected = 0
    for raw in raw_nodes:
        node, reason = validate_custom_node(raw, hero_image)
        if node is not None:
            passed.append(node)
        else:
            rejected += 1
            logger.debug("Custom node rejected (%s): %s", reason, str(raw)[:80])

    if rejected:
        logger.info("Quality gate: %d custom nodes passed, %d rejected.", len(passed), rejected)
    return passed


# ═══════════════════════════════════════════════════════════════════════════
# Finalize
# ═══════════════════════════════════════════════════════════════════════════

def finalize(state: PartialDocumentState, fallback_image: str) -> Document:
    """Build the presentation-ready ``Document`` from the stream state.

    Args:
        state: Reduced stream state; may be empty.
        fallback_image: The user's original upload, used when the stream
            never delivered an image.

    Returns:
        A fully defaulted ``Document``. Never raises on bad payload data.
    """
    payload = state.latest_payload or {}
    hero_image = state.latest_image or fallback_image or ingest_settings.placeholder_image

    return Document(
        name=_text(payload.get("name")) or ingest_settings.default_name,
        title=_text(payload.get("title")) or ingest_settings.default_title,
        bio=_text(payload.get("bio")) or ingest_settings.default_bio,
        skills=normalize_skills(payload.get("skills")),
        socials=normalize_socials(payload.get("socials")),
        stats=normalize_stats(payload.get("stats")),
        color_theme=normalize_color(payload.get("colorTheme")),
        custom_nodes=filter_custom_nodes(payload.get("customNodes"), hero_image),
        hero_image=hero_image,
    )
