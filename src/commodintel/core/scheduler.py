"""Fixed-rate cycle scheduler.

Cycles fire on a grid anchored at start: anchor, anchor + interval,
anchor + 2 * interval, ... A slow or failed cycle never shifts the grid; a
slot that passes while a cycle is still running is skipped.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .orchestrator import IntelligenceEngine
from .types import CycleOutcome


def next_fire_time(anchor: float, interval_seconds: float, now: float) -> float:
    """First grid slot strictly after `now`."""
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be > 0")
    if now < anchor:
        return anchor
    slots_elapsed = math.floor((now - anchor) / interval_seconds)
    return anchor + (slots_elapsed + 1) * interval_seconds


@dataclass
class CycleScheduler:
    """Runs `engine.run_cycle` once at start and then every `interval_seconds`.

    Manual triggers are handed to the same worker thread; the engine's own
    lock still rejects anything that overlaps a running cycle.
    """

    logger: logging.Logger
    engine: IntelligenceEngine
    interval_seconds: float = 3600.0
    run_on_start: bool = True
    monotonic: Callable[[], float] = time.monotonic

    _thread: Optional[threading.Thread] = field(default=None, init=False, repr=False)
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _wake_event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _anchor: Optional[float] = field(default=None, init=False, repr=False)
    _manual_pending: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._wake_event.clear()
        self._anchor = self.monotonic()
        self._thread = threading.Thread(target=self._loop, name="commodintel-scheduler", daemon=True)
        self._thread.start()
        self.logger.info(f"[Scheduler] Started (interval {self.interval_seconds:.0f}s)")

    def stop(self, timeout_seconds: float = 10.0) -> None:
        """Cancel the pending wait and join the worker.

        A cycle already in flight is not interrupted; the join waits for it up
        to `timeout_seconds`.
        """
        if self._thread is None:
            return
        self._stop_event.set()
        self._wake_event.set()
        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self.logger.warning("[Scheduler] Worker still busy after stop timeout")
        self._thread = None
        self.logger.info("[Scheduler] Stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger_now(self) -> bool:
        """Ask for an out-of-schedule cycle. False if one is running or already requested."""
        if not self.is_running():
            return False
        with self._lock:
            if self._manual_pending or self.engine.is_busy():
                return False
            self._manual_pending = True
        self._wake_event.set()
        return True

    def seconds_until_next(self) -> Optional[float]:
        if self._anchor is None:
            return None
        now = self.monotonic()
        return max(0.0, next_fire_time(self._anchor, self.interval_seconds, now) - now)

    def _run(self, trigger: str) -> CycleOutcome:
        try:
            return self.engine.run_cycle(trigger=trigger)
        except Exception as e:
            # The engine already converts cycle failures; this only guards the loop.
            self.logger.error(f"[Scheduler] Unexpected error in {trigger} cycle: {e}")
            return CycleOutcome.FAILED

    def _loop(self) -> None:
        assert self._anchor is not None
        if self.run_on_start and not self._stop_event.is_set():
            self._run("startup")

        next_at = next_fire_time(self._anchor, self.interval_seconds, self.monotonic())
        while not self._stop_event.is_set():
            timeout = max(0.0, next_at - self.monotonic())
            woken = self._wake_event.wait(timeout=timeout)
            if self._stop_event.is_set():
                break

            if woken:
                self._wake_event.clear()
                with self._lock:
                    manual = self._manual_pending
                    self._manual_pending = False
                if manual:
                    self._run("manual")
                if self.monotonic() >= next_at:
                    next_at = next_fire_time(self._anchor, self.interval_seconds, self.monotonic())
                continue

            self.logger.info("[Scheduler] Initiating scheduled intelligence refresh")
            self._run("scheduled")
            next_at = next_fire_time(self._anchor, self.interval_seconds, max(self.monotonic(), next_at))
