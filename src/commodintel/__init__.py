"""Commodity intelligence engine: hourly GOLD / SILVER / OIL bias from grounded news."""

from .bias import BiasClassifier, BiasOutput, HorizonAnalysis
from .core import CycleScheduler, EngineConfig, EngineState, EngineStatus, IntelligenceEngine
from .ingestion import IngestionCollector
from .market import Asset, Bias, EconomicEvent, IngestionBundle, MacroContext, NewsArticle, TradeHorizon
from .reporting import TelegramReporter

__version__ = "0.1.0"

__all__ = [
    "BiasClassifier",
    "BiasOutput",
    "HorizonAnalysis",
    "CycleScheduler",
    "EngineConfig",
    "EngineState",
    "EngineStatus",
    "IntelligenceEngine",
    "IngestionCollector",
    "Asset",
    "Bias",
    "EconomicEvent",
    "IngestionBundle",
    "MacroContext",
    "NewsArticle",
    "TradeHorizon",
    "TelegramReporter",
]
