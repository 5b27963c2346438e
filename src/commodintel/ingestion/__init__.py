"""Ingestion layer: grounded news collection and asset tagging."""

from .collector import (
    DEFAULT_ARTICLE_URL,
    DEFAULT_SOURCE_NAME,
    ExtractionError,
    IngestionCollector,
    build_extraction_prompt,
    build_search_prompt,
    macro_pulse_event,
)
from .tagging import ASSET_KEYWORDS, tag_assets

__all__ = [
    "DEFAULT_ARTICLE_URL",
    "DEFAULT_SOURCE_NAME",
    "ExtractionError",
    "IngestionCollector",
    "build_extraction_prompt",
    "build_search_prompt",
    "macro_pulse_event",
    "ASSET_KEYWORDS",
    "tag_assets",
]
