import threading

from commodintel.core.orchestrator import IntelligenceEngine, classify_error
from commodintel.core.types import TOP_N_MAX, TOP_N_MIN, CycleOutcome, EngineConfig, EngineStatus, ErrorCategory
from commodintel.llm.errors import GenerationError, RateLimitedError
from commodintel.market.types import Asset, EconomicEvent, IngestionBundle

from conftest import FIXED_NOW, make_article, make_biases


EVENT = EconomicEvent(
    id="e1",
    event_name="Macro Pulse",
    country="US/GLOBAL",
    impact="HIGH",
    release_time=FIXED_NOW,
    actual="Active",
)


class StubCollector:
    def __init__(self, bundle=None, error=None):
        self.bundle = bundle or IngestionBundle(news=(make_article(),), events=(EVENT,))
        self.error = error
        self.calls = 0

    def collect(self, now=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.bundle


class StubClassifier:
    def __init__(self, biases=None, error=None):
        self.biases = biases or make_biases()
        self.error = error
        self.received = []

    def classify(self, news, events, macro, now=None):
        self.received.append((tuple(news), tuple(events), macro))
        if self.error is not None:
            raise self.error
        return self.biases


class StubReporter:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def send_report(self, biases, now=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def make_engine(logger, collector=None, classifier=None, reporter=None):
    return IntelligenceEngine(
        logger=logger,
        config=EngineConfig(refresh_interval_seconds=3600, top_n=15),
        collector=collector or StubCollector(),
        classifier=classifier or StubClassifier(),
        reporter=reporter or StubReporter(),
        clock=lambda: FIXED_NOW,
    )


def record_statuses(engine):
    seen = []
    engine.add_listener(lambda state: seen.append(state.status))
    return seen


def test_successful_cycle_walks_states_and_publishes(logger):
    reporter = StubReporter()
    engine = make_engine(logger, reporter=reporter)
    seen = record_statuses(engine)

    assert engine.run_cycle() == CycleOutcome.COMPLETED

    assert seen[0] == EngineStatus.INGESTING
    assert EngineStatus.ANALYZING in seen
    assert seen[-1] == EngineStatus.IDLE
    assert EngineStatus.ERROR not in seen

    state = engine.state()
    assert state.error is None
    assert set(state.snapshot.biases) == set(Asset)
    assert state.snapshot.events == (EVENT,)
    assert state.snapshot.updated_at == FIXED_NOW
    assert state.last_report_sent_at == FIXED_NOW
    assert state.cycles_started == 1
    assert state.cycles_failed == 0
    assert reporter.calls == 1


def test_classifier_failure_keeps_previous_snapshot(logger):
    classifier = StubClassifier()
    engine = make_engine(logger, classifier=classifier)
    assert engine.run_cycle() == CycleOutcome.COMPLETED
    before = engine.state().snapshot

    classifier.error = GenerationError("schema mismatch")
    seen = record_statuses(engine)
    assert engine.run_cycle() == CycleOutcome.FAILED

    assert seen == [EngineStatus.INGESTING, EngineStatus.ANALYZING, EngineStatus.ERROR, EngineStatus.IDLE]
    state = engine.state()
    assert state.snapshot is before
    assert state.error is not None
    assert state.error.category == ErrorCategory.ENGINE_FAILURE
    assert state.error.message.startswith("Engine Failure")
    assert state.cycles_failed == 1


def test_ingestion_failure_never_reaches_classifier(logger):
    classifier = StubClassifier()
    reporter = StubReporter()
    engine = make_engine(logger, collector=StubCollector(error=RuntimeError("boom")), classifier=classifier, reporter=reporter)
    seen = record_statuses(engine)

    assert engine.run_cycle() == CycleOutcome.FAILED
    assert seen == [EngineStatus.INGESTING, EngineStatus.ERROR, EngineStatus.IDLE]
    assert classifier.received == []
    assert reporter.calls == 0
    assert engine.state().snapshot.updated_at is None


def test_rate_limit_is_categorised(logger):
    engine = make_engine(logger, collector=StubCollector(error=RateLimitedError("slow down")))
    engine.run_cycle()
    error = engine.state().error
    assert error.category == ErrorCategory.RATE_LIMIT
    assert error.message.startswith("API Quota Reached")


def test_next_cycle_clears_error(logger):
    collector = StubCollector(error=RuntimeError("offline"))
    engine = make_engine(logger, collector=collector)
    engine.run_cycle()
    assert engine.state().error is not None

    collector.error = None
    assert engine.run_cycle() == CycleOutcome.COMPLETED
    assert engine.state().error is None
    assert engine.state().cycles_started == 2


def test_classify_error_markers():
    assert classify_error(RuntimeError("HTTP 429 Too Many Requests")) == ErrorCategory.RATE_LIMIT
    assert classify_error(RuntimeError("Quota exceeded for model")) == ErrorCategory.RATE_LIMIT
    assert classify_error(RateLimitedError("anything")) == ErrorCategory.RATE_LIMIT
    assert classify_error(ValueError("bad json")) == ErrorCategory.ENGINE_FAILURE


def test_dispatch_failure_does_not_fail_cycle(logger):
    engine = make_engine(logger, reporter=StubReporter(error=RuntimeError("telegram down")))
    assert engine.run_cycle() == CycleOutcome.COMPLETED
    state = engine.state()
    assert state.error is None
    assert state.last_report_sent_at is None
    assert set(state.snapshot.biases) == set(Asset)


def test_unsent_report_leaves_timestamp_untouched(logger):
    engine = make_engine(logger, reporter=StubReporter(result=False))
    engine.run_cycle()
    assert engine.state().last_report_sent_at is None


def test_empty_ingestion_still_classifies(logger):
    classifier = StubClassifier()
    engine = make_engine(
        logger,
        collector=StubCollector(bundle=IngestionBundle(news=(), events=(EVENT,))),
        classifier=classifier,
    )
    assert engine.run_cycle() == CycleOutcome.COMPLETED
    assert classifier.received[0][0] == ()
    assert engine.state().snapshot.news == ()


def test_macro_context_comes_from_config(logger):
    classifier = StubClassifier()
    engine = make_engine(logger, classifier=classifier)
    engine.run_cycle()
    assert classifier.received[0][2] == engine.config.macro


def test_concurrent_trigger_is_rejected(logger):
    entered = threading.Event()
    release = threading.Event()

    class BlockingCollector(StubCollector):
        def collect(self, now=None):
            entered.set()
            release.wait(timeout=5)
            return super().collect(now=now)

    collector = BlockingCollector()
    engine = make_engine(logger, collector=collector)
    outcomes = []
    worker = threading.Thread(target=lambda: outcomes.append(engine.run_cycle(trigger="scheduled")))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert engine.is_busy()
        assert engine.state().status == EngineStatus.INGESTING
        assert engine.run_cycle(trigger="manual") == CycleOutcome.REJECTED
    finally:
        release.set()
        worker.join(timeout=5)

    assert outcomes == [CycleOutcome.COMPLETED]
    assert collector.calls == 1
    assert not engine.is_busy()


def test_listener_errors_are_contained(logger):
    engine = make_engine(logger)

    def broken(state):
        raise RuntimeError("listener bug")

    engine.add_listener(broken)
    assert engine.run_cycle() == CycleOutcome.COMPLETED


def test_top_n_is_clamped_to_supported_range(monkeypatch):
    assert EngineConfig(top_n=3).top_n == TOP_N_MIN
    assert EngineConfig(top_n=0).top_n == TOP_N_MIN
    assert EngineConfig(top_n=18).top_n == 18
    assert EngineConfig(top_n=50).top_n == TOP_N_MAX

    monkeypatch.setenv("BIAS_TOP_N", "0")
    assert EngineConfig().top_n == TOP_N_MIN
    monkeypatch.setenv("BIAS_TOP_N", "20")
    assert EngineConfig().top_n == 20
