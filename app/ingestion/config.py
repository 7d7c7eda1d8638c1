"""
Stream ingestion configuration.

All values can be overridden via environment variables prefixed with
``INGEST_`` (e.g. ``INGEST_MAX_COL_SPAN=4``).
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class IngestSettings(BaseSettings):
    """Tuneable knobs for every pipeline stage."""

    # ── Frame decoding ───────────────────────────────────────────────────
    encoding: str = "utf-8"
    max_pending_chars: int = 0  # 0 = unlimited

    # ── Document defaults ────────────────────────────────────────────────
    default_name: str = "Your Name"
    default_title: str = "Professional"
    default_bio: str = "A passionate professional creating amazing experiences."
    default_skills: list[str] = ["Design", "Innovation", "Strategy"]
    default_stats: list[dict[str, str]] = [
        {"label": "Experience", "value": "2+ Years"},
        {"label": "Projects", "value": "10+"},
    ]
    default_color_theme: str = "#8400ff"
    placeholder_image: str = "https://via.placeholder.com/300"

    # ── Layout clamping ──────────────────────────────────────────────────
    min_col_span: int = 1
    max_col_span: int = 6  # grid has 6 columns on large screens
    min_row_span: int = 1
    max_row_span: int = 2

    # ── Custom components ────────────────────────────────────────────────
    known_components: list[str] = [
        "GradientText",
        "CountUp",
        "ShinyText",
        "TiltedCard",
        "DecryptedText",
        "SplitText",
        "SpotlightCard",
        "CircularText",
        "Iridescence",
        "InfiniteScroll",
        "TrueFocus",
    ]
    image_placeholder_token: str = "processedImage"

    model_config = {
        "env_prefix": "INGEST_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


ingest_settings = IngestSettings()
