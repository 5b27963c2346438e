from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from ..llm.gemini_client import GenerationClient, GroundingSource
from ..market.types import Asset, EconomicEvent, IngestionBundle, NewsArticle
from ..util.jsonlog import log_event, utc_now
from .tagging import tag_assets

DEFAULT_SOURCE_NAME = "Financial Feed"
DEFAULT_ARTICLE_URL = "https://www.reuters.com/business/commodities"
DEFAULT_IMPACT_SCORE = 50


class ExtractionError(ValueError):
    """The extraction call returned JSON that is not a list of article stubs."""


def _generate_id() -> str:
    return uuid.uuid4().hex[:13]


def build_search_prompt() -> str:
    assets = ", ".join(a.value for a in Asset)
    return f"""Search for high-impact financial news from the last 24 hours for: {assets}.
Focus on: Reuters, CNBC, Bloomberg, and EIA reports.
Specifically find:
1. Gold/XAU: Fed sentiment, central bank buying, yield shifts.
2. Silver/XAG: Industrial demand, solar/EV manufacturing, silver/gold ratio.
3. Oil/WTI: OPEC+ output, EIA inventory data, geopolitical supply risks.

Return a detailed summary of high-impact intelligence."""


def build_extraction_prompt(intelligence: str, sources: Sequence[GroundingSource]) -> str:
    source_lines = "\n".join(f"[S{i}]: {s.title} - {s.uri}" for i, s in enumerate(sources))
    return f"""Convert the following market intelligence into a structured JSON array.

INTELLIGENCE:
{intelligence}

SOURCES/URLS AVAILABLE:
{source_lines or "(none)"}

RULES:
1. Map the most relevant Source URL from the list above to each article.
2. Only use URLs that appear in the list above.
3. Set "impact_score" 1-100 based on institutional significance.

JSON SCHEMA:
Array<{{
  "asset_context": "GOLD" | "SILVER" | "OIL",
  "headline": "string",
  "summary": "string",
  "source_name": "string",
  "url": "string (MUST BE FROM SOURCES LIST)",
  "impact_score": number
}}>"""


def _impact(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_IMPACT_SCORE
    if score <= 0:
        # 0 counts as missing
        return DEFAULT_IMPACT_SCORE
    return max(0, min(100, score))


def macro_pulse_event(now: datetime) -> EconomicEvent:
    """The fixed placeholder macro event emitted every cycle."""
    return EconomicEvent(
        id=_generate_id(),
        event_name="Unified Macro Pulse",
        country="US/GLOBAL",
        impact="HIGH",
        actual="MONITORED",
        forecast="N/A",
        previous="N/A",
        release_time=now,
    )


@dataclass
class IngestionCollector:
    """Search-grounded news collection for GOLD / SILVER / OIL.

    Two generation calls per cycle:
    - a search-grounded call that returns prose plus cited web sources
    - a JSON-mode call that reshapes that prose into article stubs

    Stubs are tagged locally by keyword, articles with no asset are dropped.
    Errors from either call propagate untouched; nothing is retried here.
    """

    logger: logging.Logger
    client: GenerationClient

    def collect(self, now: Optional[datetime] = None) -> IngestionBundle:
        now = now or utc_now()

        grounded = self.client.search(build_search_prompt())
        raw = self.client.generate_json(build_extraction_prompt(grounded.text, grounded.sources))
        if not isinstance(raw, list):
            raise ExtractionError(f"Expected a JSON array of articles, got {type(raw).__name__}")

        allowed_urls = {s.uri for s in grounded.sources}
        articles = [a for a in (self._to_article(stub, now, allowed_urls) for stub in raw) if a is not None]
        news = tuple(a for a in articles if a.assets)
        events = (macro_pulse_event(now),)

        log_event(
            self.logger,
            "IngestionCollector",
            now,
            grounding_sources=len(grounded.sources),
            stubs=len(raw),
            articles=len(news),
            dropped_untagged=len(articles) - len(news),
            per_asset={a.value: sum(1 for n in news if a in n.assets) for a in Asset},
        )
        return IngestionBundle(news=news, events=events)

    def _to_article(self, stub: Any, now: datetime, allowed_urls: set) -> Optional[NewsArticle]:
        if not isinstance(stub, dict):
            self.logger.debug(f"[IngestionCollector] Skipping non-object stub: {stub!r}")
            return None

        title = str(stub.get("headline") or "").strip()
        if not title:
            return None
        summary = str(stub.get("summary") or "").strip()

        url = str(stub.get("url") or "").strip() or DEFAULT_ARTICLE_URL
        if allowed_urls and url not in allowed_urls:
            url = DEFAULT_ARTICLE_URL

        return NewsArticle(
            id=_generate_id(),
            source=str(stub.get("source_name") or "").strip() or DEFAULT_SOURCE_NAME,
            title=title,
            content=summary,
            url=url,
            published_at=now,
            fetched_at=now,
            assets=tag_assets(f"{title} {summary}", stub.get("asset_context")),
            impact_score=_impact(stub.get("impact_score")),
        )
