from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from ..bias.types import BiasOutput
from ..llm.errors import RateLimitedError, is_rate_limit_message
from ..market.types import Asset, EconomicEvent, IngestionBundle, MacroContext, NewsArticle
from ..util.jsonlog import log_event, utc_now
from .types import (
    ERROR_MESSAGES,
    CycleError,
    CycleOutcome,
    EngineConfig,
    EngineState,
    EngineStatus,
    ErrorCategory,
    IntelSnapshot,
)


class Collector(Protocol):

    def collect(self, now: Optional[datetime] = None) -> IngestionBundle:
        raise NotImplementedError


class Classifier(Protocol):

    def classify(
        self,
        news: Sequence[NewsArticle],
        events: Sequence[EconomicEvent],
        macro: MacroContext,
        now: Optional[datetime] = None,
    ) -> Dict[Asset, BiasOutput]:
        raise NotImplementedError


class Reporter(Protocol):

    def send_report(self, biases: Dict[Asset, BiasOutput], now: Optional[datetime] = None) -> bool:
        raise NotImplementedError


def classify_error(error: BaseException) -> ErrorCategory:
    """Map a cycle failure to the category shown to the user."""
    if isinstance(error, RateLimitedError):
        return ErrorCategory.RATE_LIMIT
    if is_rate_limit_message(str(error)):
        return ErrorCategory.RATE_LIMIT
    return ErrorCategory.ENGINE_FAILURE


StateListener = Callable[[EngineState], None]


@dataclass
class IntelligenceEngine:
    """State machine for one ingestion -> classification -> dispatch cycle.

    IDLE -> INGESTING -> ANALYZING -> IDLE on success,
    INGESTING|ANALYZING -> ERROR -> IDLE on failure, with the error kept on
    the state until the next cycle starts.

    Guarantees:
    - at most one cycle in flight; extra triggers are rejected, not queued
    - the snapshot is swapped whole after classification succeeds, so a failed
      cycle leaves the previous news/events/biases in place
    - dispatch is best-effort and never fails the cycle
    """

    logger: logging.Logger
    config: EngineConfig
    collector: Collector
    classifier: Classifier
    reporter: Reporter
    clock: Callable[[], datetime] = utc_now

    _state: EngineState = field(
        default_factory=lambda: EngineState(status=EngineStatus.IDLE, snapshot=IntelSnapshot()),
        init=False,
        repr=False,
    )
    _cycle_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _state_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _listeners: List[StateListener] = field(default_factory=list, init=False, repr=False)

    def state(self) -> EngineState:
        with self._state_lock:
            return self._state

    def is_busy(self) -> bool:
        return self._cycle_lock.locked()

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def run_cycle(self, trigger: str = "manual") -> CycleOutcome:
        if not self._cycle_lock.acquire(blocking=False):
            self.logger.info(f"[Engine] Cycle already in flight; {trigger} trigger rejected")
            return CycleOutcome.REJECTED
        try:
            return self._run_locked(trigger)
        finally:
            self._cycle_lock.release()

    def _run_locked(self, trigger: str) -> CycleOutcome:
        now = self.clock()
        self._update(
            status=EngineStatus.INGESTING,
            error=None,
            cycles_started=self.state().cycles_started + 1,
        )
        self.logger.info(f"[Engine] Cycle started ({trigger})")

        try:
            bundle = self.collector.collect(now=now)
            self._update(status=EngineStatus.ANALYZING)
            biases = self.classifier.classify(bundle.news, bundle.events, self.config.macro, now=now)
        except Exception as e:
            self._fail(e, now, trigger)
            return CycleOutcome.FAILED

        self._update(
            snapshot=IntelSnapshot(
                news=tuple(bundle.news),
                events=tuple(bundle.events),
                biases=dict(biases),
                updated_at=now,
            )
        )

        try:
            sent = bool(self.reporter.send_report(biases, now=now))
        except Exception as e:
            self.logger.error(f"[Engine] Report dispatch raised: {e}")
            sent = False

        if sent:
            self._update(status=EngineStatus.IDLE, last_report_sent_at=self.clock())
        else:
            self._update(status=EngineStatus.IDLE)

        log_event(
            self.logger,
            "Engine",
            now,
            event="CYCLE_COMPLETED",
            trigger=trigger,
            news=len(bundle.news),
            events=len(bundle.events),
            report_sent=sent,
        )
        return CycleOutcome.COMPLETED

    def _fail(self, error: Exception, now: datetime, trigger: str) -> None:
        failed_in = self.state().status
        category = classify_error(error)
        self.logger.error(f"[Engine] Intelligence cycle failed during {failed_in.value}: {error}")
        self._update(
            status=EngineStatus.ERROR,
            error=CycleError(
                category=category,
                message=ERROR_MESSAGES[category],
                detail=str(error),
                occurred_at=now,
            ),
            cycles_failed=self.state().cycles_failed + 1,
        )
        # error stays visible on the state until the next cycle clears it
        self._update(status=EngineStatus.IDLE)
        log_event(
            self.logger,
            "Engine",
            now,
            event="CYCLE_FAILED",
            level=logging.ERROR,
            trigger=trigger,
            phase=failed_in.value,
            category=category.value,
            error_type=type(error).__name__,
        )

    def _update(self, **changes: object) -> None:
        with self._state_lock:
            self._state = replace(self._state, **changes)
            state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.warning(f"[Engine] State listener failed: {e}")
