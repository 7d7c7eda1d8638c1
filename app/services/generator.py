"""Portfolio generator: asks the LLM for a portfolio via a tool call and relays
its output as NDJSON wire records.

Record shapes (one JSON object per line)::

    {"type": "chunk", "content": "<narration text>"}
    {"type": "data",  "content": {<generate_portfolio arguments>}}
    {"type": "image", "content": "<hero image data URI>"}
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

from app.services import llm

logger = logging.getLogger(__name__)

TOOL_NAME = "generate_portfolio"
ERROR_NOTICE = "\n❌ Error during generation."

# ---------------------------------------------------------------------------
# Tool schema
# ---------------------------------------------------------------------------

PORTFOLIO_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Generates the final portfolio data structure with layout and content.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The user's full name"},
                "title": {"type": "string", "description": "Professional title"},
                "bio": {"type": "string", "description": "A compelling professional biography"},
                "skills": {"type": "array", "items": {"type": "string"}},
                "socials": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"platform": {"type": "string"}, "url": {"type": "string"}},
                        "required": ["platform", "url"],
                    },
                },
                "stats": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"label": {"type": "string"}, "value": {"type": "string"}},
                        "required": ["label", "value"],
                    },
                },
                "colorTheme": {"type": "string", "description": "Hex color code for the theme"},
                "customNodes": {
                    "type": "array",
                    "description": "Extra cells for the bento grid",
                    "items": {
                        "type": "object",
                        "properties": {
                            "colSpan": {"type": "number"},
                            "rowSpan": {"type": "number"},
                            "type": {
                                "type": "string",
                                "enum": ["html", "text", "stat", "react-component"],
                            },
                            "content": {"type": "string"},
                            "component": {"type": "string"},
                            "props": {"type": "object", "properties": {}},
                            "children": {"type": "string"},
                        },
                        "required": ["colSpan", "rowSpan", "type"],
                    },
                },
            },
            "required": ["name", "title", "bio", "skills", "colorTheme", "customNodes"],
        },
    },
}

SYSTEM_PROMPT = """\
You are a senior UI/UX designer and content strategist who builds
award-winning personal portfolios.

First, think out loud in plain text: infer the user's persona, pick a colour
psychology and plan a bento-grid layout. Then call the `generate_portfolio`
tool exactly once with the complete portfolio.

Content rules:
- A specific, professional bio (never generic), 6-8 skills, 4-6 stats.
- A hex colour theme.
- The hero image, bio, stats and skills are rendered already. Use
  `customNodes` only for EXTRA blocks (philosophy, services, timeline,
  testimonials, call to action …).

Custom node rules:
- type "html" for rich blocks. No backgrounds, borders or shadows; use
  `text-white` headings and `text-zinc-400` body text.
- type "react-component" with `component` one of: GradientText, CountUp,
  ShinyText, TiltedCard, DecryptedText, SplitText, SpotlightCard,
  CircularText, Iridescence, InfiniteScroll (pass `props.items`), TrueFocus.
  Put the display text in `content`.
- The grid has 6 columns: colSpan values in a row should sum to 6; rowSpan
  is 1 or 2.
- The main image source is the literal string "processedImage".
- English only. Dark mode, glassmorphism, high-end aesthetic.
"""


def build_messages(image: str, text: str) -> list[dict[str, Any]]:
    """Build the chat messages: system prompt, user text and user image."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": f'User input: "{text}"'},
                {"type": "image_url", "image_url": {"url": _as_data_uri(image)}},
            ],
        },
    ]


def _as_data_uri(image: str) -> str:
    if image.startswith(("data:", "http://", "https://")):
        return image
    return f"data:image/jpeg;base64,{image}"


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

def encode_record(record: dict[str, Any]) -> bytes:
    """Serialise one wire record as a UTF-8 NDJSON line."""
    return (json.dumps(record, ensure_ascii=False) + "\n").encode("utf-8")


async def generate_records(image: str, text: str) -> AsyncIterator[dict[str, Any]]:
    """Yield wire records for one generation run.

    Narration is relayed as soon as it arrives. Tool-call arguments arrive in
    fragments and are relayed as one ``data`` record per completed call once
    the model stream ends. A final ``image`` record carries the hero image;
    no image model is configured, so it is the user's upload.
    """
    calls: dict[int, dict[str, str]] = {}

    async for chunk in llm.stream_chat(build_messages(image, text), tools=[PORTFOLIO_TOOL]):
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta
        if delta.content:
            yield {"type": "chunk", "content": delta.content}
        for call in delta.tool_calls or []:
            slot = calls.setdefault(call.index, {"name": "", "arguments": ""})
            if call.function is not None:
                if call.function.name:
                    slot["name"] = call.function.name
                slot["arguments"] += call.function.arguments or ""

    for index in sorted(calls):
        call = calls[index]
        if call["name"] != TOOL_NAME:
            logger.warning("Ignoring unexpected tool call: %s", call["name"])
            continue
        try:
            args = json.loads(call["arguments"] or "{}")
        except (json.JSONDecodeError, RecursionError):
            logger.warning("Tool call arguments are not valid JSON: %s…", call["arguments"][:120])
            yield {"type": "chunk", "content": "\n⚠️ The portfolio data could not be read."}
            continue
        logger.info("Function call received: %s", TOOL_NAME)
        yield {"type": "data", "content": args}

    yield {"type": "image", "content": _as_data_uri(image)}


async def generate_ndjson(
    image: str,
    text: str,
    *,
    relay_errors: bool = True,
) -> AsyncIterator[bytes]:
    """Yield the generation run as NDJSON bytes.

    With *relay_errors* an upstream failure ends the stream with a narration
    notice (the HTTP response has already started). Without it the failure
    propagates so the caller can treat it as a transport error.
    """
    try:
        async for record in generate_records(image, text):
            yield encode_record(record)
    except Exception:
        if not relay_errors:
            raise
        logger.exception("Stream error during generation.")
        yield encode_record({"type": "chunk", "content": ERROR_NOTICE})
