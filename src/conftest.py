from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from commodintel.bias.types import BiasOutput
from commodintel.llm.gemini_client import GroundedText, GroundingSource
from commodintel.market.types import Asset, NewsArticle

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


def horizon_block(bias: str = "BULLISH", confidence: float = 0.7, driver: str = "USD weakness") -> Dict[str, Any]:
    return {"bias": bias, "confidence": confidence, "driver": driver}


def asset_block(bias: str = "BULLISH", confidence: float = 0.7, key_drivers: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "horizons": {
            "scalping": horizon_block(bias, confidence, "Headline momentum"),
            "intraday": horizon_block(bias, confidence, "Dollar softening into US session"),
            "swing": horizon_block("NEUTRAL", 0.4, "Macro anchor unchanged"),
        },
        "key_drivers": key_drivers if key_drivers is not None else ["Weak DXY", "Central bank buying", "Real yields flat", "Extra"],
        "supporting_news_ids": ["a1"],
        "invalidated_if": ["DXY reclaims 105"],
        "timestamp": "2025-03-14T09:30:00Z",
    }


def bias_payload(**kwargs: Any) -> Dict[str, Any]:
    return {a.value: asset_block(**kwargs) for a in Asset}


def make_biases(**kwargs: Any) -> Dict[Asset, BiasOutput]:
    return {a: BiasOutput.from_json(a, asset_block(**kwargs)) for a in Asset}


def make_article(
    title: str = "Gold rallies as Fed signals cuts",
    impact: int = 80,
    assets=(Asset.GOLD,),
    article_id: str = "a1",
) -> NewsArticle:
    return NewsArticle(
        id=article_id,
        source="Reuters",
        title=title,
        content="",
        url="https://example.com/a",
        published_at=FIXED_NOW,
        fetched_at=FIXED_NOW,
        assets=tuple(assets),
        impact_score=impact,
    )


class FakeGenerationClient:
    """Scripted stand-in for GeminiClient; no network."""

    def __init__(
        self,
        search_result: Optional[GroundedText] = None,
        json_results: Optional[List[Any]] = None,
        search_error: Optional[Exception] = None,
    ) -> None:
        self.search_result = search_result or GroundedText(
            text="Gold up on Fed; OPEC+ holds output.",
            sources=(GroundingSource(title="Reuters", uri="https://reuters.com/x"),),
        )
        self.json_results = list(json_results or [])
        self.search_error = search_error
        self.search_prompts: List[str] = []
        self.json_calls: List[Dict[str, Any]] = []

    def search(self, prompt: str) -> GroundedText:
        self.search_prompts.append(prompt)
        if self.search_error is not None:
            raise self.search_error
        return self.search_result

    def generate_json(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        self.json_calls.append({"prompt": prompt, "schema": schema})
        result = self.json_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("commodintel.test")


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
