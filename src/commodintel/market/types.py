from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Tuple


class Asset(str, Enum):
    GOLD = "GOLD"
    SILVER = "SILVER"
    OIL = "OIL"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Asset"]:
        """Lenient lookup for labels coming back from the model ("gold", " OIL ")."""
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class Bias(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class TradeHorizon(str, Enum):
    SCALPING = "SCALPING"  # minutes to hours
    INTRADAY = "INTRADAY"  # hours to a day
    SWING = "SWING"  # days to weeks

    @property
    def key(self) -> str:
        """Lower-case key used in the classifier JSON payload."""
        return self.value.lower()


EventImpact = Literal["LOW", "MEDIUM", "HIGH"]


@dataclass(frozen=True)
class NewsArticle:
    id: str
    source: str
    title: str
    content: str
    url: str
    published_at: datetime
    fetched_at: datetime
    assets: Tuple[Asset, ...] = ()
    impact_score: int = 50


@dataclass(frozen=True)
class EconomicEvent:
    id: str
    event_name: str
    country: str
    impact: EventImpact
    release_time: datetime
    actual: Optional[str] = None
    forecast: Optional[str] = None
    previous: Optional[str] = None


@dataclass(frozen=True)
class MacroContext:
    """Point-in-time macro snapshot fed to the classifier.

    Values come from configuration; nothing in the cycle derives them from
    ingested news.
    """

    usd_trend: str = "WEAKENING"
    yields_trend: str = "STABLE"
    risk_sentiment: str = "RISK_ON"


@dataclass(frozen=True)
class IngestionBundle:
    news: Tuple[NewsArticle, ...] = field(default_factory=tuple)
    events: Tuple[EconomicEvent, ...] = field(default_factory=tuple)
