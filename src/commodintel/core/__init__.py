"""Core orchestration: cycle state machine and scheduler."""

from .orchestrator import IntelligenceEngine, classify_error
from .scheduler import CycleScheduler, next_fire_time
from .types import (
    ERROR_MESSAGES,
    TOP_N_MAX,
    TOP_N_MIN,
    CycleError,
    CycleOutcome,
    EngineConfig,
    EngineState,
    EngineStatus,
    ErrorCategory,
    IntelSnapshot,
)

__all__ = [
    "IntelligenceEngine",
    "classify_error",
    "CycleScheduler",
    "next_fire_time",
    "ERROR_MESSAGES",
    "TOP_N_MAX",
    "TOP_N_MIN",
    "CycleError",
    "CycleOutcome",
    "EngineConfig",
    "EngineState",
    "EngineStatus",
    "ErrorCategory",
    "IntelSnapshot",
]
