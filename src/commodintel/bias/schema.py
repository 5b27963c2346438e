"""Response schema for the structured bias call (Gemini OpenAPI subset)."""

from __future__ import annotations

from typing import Any, Dict

from ..market.types import Asset, TradeHorizon

HORIZON_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "bias": {"type": "STRING", "enum": ["BULLISH", "BEARISH", "NEUTRAL"]},
        "confidence": {"type": "NUMBER"},
        "driver": {"type": "STRING"},
    },
    "required": ["bias", "confidence", "driver"],
}

_STRING_LIST: Dict[str, Any] = {"type": "ARRAY", "items": {"type": "STRING"}}

ASSET_BIAS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "horizons": {
            "type": "OBJECT",
            "properties": {h.key: HORIZON_SCHEMA for h in TradeHorizon},
            "required": [h.key for h in TradeHorizon],
        },
        "key_drivers": _STRING_LIST,
        "supporting_news_ids": _STRING_LIST,
        "invalidated_if": _STRING_LIST,
        "timestamp": {"type": "STRING"},
    },
    "required": ["horizons", "key_drivers", "supporting_news_ids", "invalidated_if", "timestamp"],
}

SYSTEM_BIAS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {a.value: ASSET_BIAS_SCHEMA for a in Asset},
    "required": [a.value for a in Asset],
}
