"""Bias layer: per-asset, per-horizon directional calls."""

from .classifier import (
    NOISE_IMPACT_THRESHOLD,
    NOISE_MARKER,
    STABILITY_RULES,
    BiasClassifier,
    build_bias_prompt,
    format_news_line,
    parse_bias_response,
    select_top_news,
)
from .schema import SYSTEM_BIAS_SCHEMA
from .types import BiasOutput, BiasSchemaError, HorizonAnalysis

__all__ = [
    "NOISE_IMPACT_THRESHOLD",
    "NOISE_MARKER",
    "STABILITY_RULES",
    "BiasClassifier",
    "build_bias_prompt",
    "format_news_line",
    "parse_bias_response",
    "select_top_news",
    "SYSTEM_BIAS_SCHEMA",
    "BiasOutput",
    "BiasSchemaError",
    "HorizonAnalysis",
]
