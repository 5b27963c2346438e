"""Market domain types shared by every layer."""

from .types import (
    Asset,
    Bias,
    EconomicEvent,
    EventImpact,
    IngestionBundle,
    MacroContext,
    NewsArticle,
    TradeHorizon,
)

__all__ = [
    "Asset",
    "Bias",
    "EconomicEvent",
    "EventImpact",
    "IngestionBundle",
    "MacroContext",
    "NewsArticle",
    "TradeHorizon",
]
