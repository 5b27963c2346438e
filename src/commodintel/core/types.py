from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from ..bias.types import BiasOutput
from ..market.types import Asset, EconomicEvent, MacroContext, NewsArticle


class EngineStatus(str, Enum):
    IDLE = "IDLE"
    INGESTING = "INGESTING"
    ANALYZING = "ANALYZING"
    ERROR = "ERROR"

    @property
    def busy(self) -> bool:
        return self in (EngineStatus.INGESTING, EngineStatus.ANALYZING)


class ErrorCategory(str, Enum):
    RATE_LIMIT = "RATE_LIMIT"
    ENGINE_FAILURE = "ENGINE_FAILURE"


ERROR_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.RATE_LIMIT: (
        "API Quota Reached: The system is currently rate-limited. Next auto-attempt at the next scheduled cycle."
    ),
    ErrorCategory.ENGINE_FAILURE: "Engine Failure: Check system logs or API connectivity.",
}


def _env_macro() -> MacroContext:
    return MacroContext(
        usd_trend=os.getenv("MACRO_USD_TREND", "WEAKENING"),
        yields_trend=os.getenv("MACRO_YIELDS_TREND", "STABLE"),
        risk_sentiment=os.getenv("MACRO_RISK_SENTIMENT", "RISK_ON"),
    )


TOP_N_MIN = 15
TOP_N_MAX = 20


@dataclass
class EngineConfig:
    refresh_interval_seconds: float = field(
        default_factory=lambda: float(os.getenv("REFRESH_INTERVAL_SECONDS", "3600"))
    )
    run_on_start: bool = True

    # How many of the highest-impact articles go into the bias prompt (15..20)
    top_n: int = field(default_factory=lambda: int(os.getenv("BIAS_TOP_N", "15")))

    # Fixed macro snapshot for the classifier (not derived from ingestion)
    macro: MacroContext = field(default_factory=_env_macro)

    def __post_init__(self) -> None:
        self.top_n = max(TOP_N_MIN, min(TOP_N_MAX, int(self.top_n)))


@dataclass(frozen=True)
class IntelSnapshot:
    """Latest successful cycle output. Replaced as a whole, never patched."""

    news: Tuple[NewsArticle, ...] = ()
    events: Tuple[EconomicEvent, ...] = ()
    biases: Dict[Asset, BiasOutput] = field(default_factory=dict)
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CycleError:
    category: ErrorCategory
    message: str
    detail: str
    occurred_at: datetime


@dataclass(frozen=True)
class EngineState:
    """Read-only view handed to the presentation layer."""

    status: EngineStatus
    snapshot: IntelSnapshot
    error: Optional[CycleError] = None
    last_report_sent_at: Optional[datetime] = None
    cycles_started: int = 0
    cycles_failed: int = 0


class CycleOutcome(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"  # another cycle was already in flight
