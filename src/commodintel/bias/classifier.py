from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..llm.gemini_client import GenerationClient
from ..market.types import Asset, EconomicEvent, MacroContext, NewsArticle
from ..util.jsonlog import log_event, utc_now
from .schema import SYSTEM_BIAS_SCHEMA
from .types import BiasOutput, BiasSchemaError

NOISE_IMPACT_THRESHOLD = 70
NOISE_MARKER = "[NOISE: SCALPING ONLY]"

STABILITY_RULES = """STABILITY RULES:
1. PRIORITIZE STRUCTURAL MACRO: USD (DXY) and Real Yields are the "Anchor Drivers" for Swing/Intraday. Do not flip Swing/Intraday bias on a single headline.
2. TRANSIENT NOISE: Headlines with Impact < 70 (marked [NOISE: SCALPING ONLY]) should only influence the SCALPING horizon.
3. SILVER INDEPENDENCE: Evaluate Silver based on manufacturing/industrial PMIs and solar demand. Do not auto-copy Gold bias.
4. CONFIDENCE: If news is contradictory, bias MUST be NEUTRAL with low confidence."""


def select_top_news(news: Sequence[NewsArticle], top_n: int) -> List[NewsArticle]:
    """Highest impact first; stable for equal scores. Does not touch `news`."""
    return sorted(news, key=lambda n: n.impact_score, reverse=True)[: max(int(top_n), 0)]


def format_news_line(article: NewsArticle) -> str:
    tags = ",".join(a.value for a in article.assets)
    line = f"[{tags}] IMPACT:{article.impact_score} | ID:{article.id} | {article.title}"
    if article.impact_score < NOISE_IMPACT_THRESHOLD:
        line = f"{NOISE_MARKER} {line}"
    return line


def _format_event_line(event: EconomicEvent) -> str:
    return (
        f"{event.event_name} ({event.country}, {event.impact}) "
        f"actual={event.actual or 'N/A'} forecast={event.forecast or 'N/A'} previous={event.previous or 'N/A'}"
    )


def build_bias_prompt(
    news: Sequence[NewsArticle],
    events: Sequence[EconomicEvent],
    macro: MacroContext,
) -> str:
    """Prompt for the structured bias call; `news` is used as given (already top-N)."""

    news_block = "\n".join(format_news_line(n) for n in news) or "(no qualifying headlines this cycle)"
    events_block = "\n".join(f"- {_format_event_line(e)}" for e in events) or "- (none)"

    return f"""Role: Institutional Commodity Strategist.
Task: Generate directional bias for GOLD, SILVER, and OIL.

{STABILITY_RULES}

INPUT DATA:
{news_block}

ECONOMIC EVENTS:
{events_block}

MACRO ANCHOR:
- USD Trend: {macro.usd_trend}
- Yields: {macro.yields_trend}
- Risk: {macro.risk_sentiment}

Provide the response in the specified JSON schema. Ensure the 'driver' field contains a concise, logical justification.
Use the article IDs above for 'supporting_news_ids'."""


def parse_bias_response(payload: object) -> Dict[Asset, BiasOutput]:
    """All three assets or BiasSchemaError; never a partial mapping."""
    if not isinstance(payload, dict):
        raise BiasSchemaError(f"Expected a JSON object keyed by asset, got {type(payload).__name__}")

    out: Dict[Asset, BiasOutput] = {}
    for asset in Asset:
        if asset.value not in payload:
            raise BiasSchemaError(f"Asset {asset.value} missing from bias response")
        out[asset] = BiasOutput.from_json(asset, payload[asset.value])
    return out


@dataclass
class BiasClassifier:
    """Directional bias per asset and horizon, delegated to one structured Gemini call.

    Selection and prompt construction happen here; the stability rules are
    plain instructions to the model and are not re-checked on the response.
    """

    logger: logging.Logger
    client: GenerationClient
    top_n: int = 15

    def classify(
        self,
        news: Sequence[NewsArticle],
        events: Sequence[EconomicEvent],
        macro: MacroContext,
        now: Optional[datetime] = None,
    ) -> Dict[Asset, BiasOutput]:
        now = now or utc_now()

        top_news = select_top_news(news, self.top_n)
        prompt = build_bias_prompt(top_news, events, macro)
        payload = self.client.generate_json(prompt, schema=SYSTEM_BIAS_SCHEMA)
        biases = parse_bias_response(payload)

        log_event(
            self.logger,
            "BiasClassifier",
            now,
            news_in=len(news),
            news_used=len(top_news),
            noise_items=sum(1 for n in top_news if n.impact_score < NOISE_IMPACT_THRESHOLD),
            macro={
                "usd_trend": macro.usd_trend,
                "yields_trend": macro.yields_trend,
                "risk_sentiment": macro.risk_sentiment,
            },
            biases={
                a.value: {h.key: f"{ha.bias.value}:{ha.confidence:.2f}" for h, ha in b.horizons.items()}
                for a, b in biases.items()
            },
        )
        return biases
