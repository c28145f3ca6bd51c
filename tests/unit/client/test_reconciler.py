"""Client Reconciler 테스트 — 순수 reducer 규칙."""

from factories import make_analyzed, make_article

from impact_scanner.client import cancel, fail, reduce
from impact_scanner.domain import (
    AnalyzedEvent,
    ArticlesEvent,
    CompleteEvent,
    ErrorEvent,
    Progress,
    ScanPhase,
    ScanState,
    Sentiment,
    StatusEvent,
)

ARTICLES = [make_article(n) for n in range(1, 4)]


def _analyzed(n: int, current: int, sentiment: Sentiment = Sentiment.BULLISH) -> AnalyzedEvent:
    return AnalyzedEvent(article=make_analyzed(n, sentiment), progress=Progress(current=current, total=3))


def _started() -> ScanState:
    state = reduce(ScanState(), StatusEvent(phase=ScanPhase.FETCHING, message="Fetching news articles..."))
    state = reduce(state, ArticlesEvent(articles=ARTICLES, total=3))
    return reduce(state, StatusEvent(phase=ScanPhase.ANALYZING, message="Analyzing articles...", total=3))


class TestReduce:
    def test_articles_create_pending_slots(self):
        state = _started()
        assert state.phase == ScanPhase.ANALYZING
        assert state.total == 3
        assert state.analyzed_count == 0
        assert state.pending_keys == [a.key for a in ARTICLES]

    def test_second_articles_event_ignored(self):
        state = _started()
        again = reduce(state, ArticlesEvent(articles=[make_article(9)], total=1))
        assert again is state

    def test_analyzed_fills_slot(self):
        state = reduce(_started(), _analyzed(2, current=1))
        assert state.analyzed_count == 1
        assert state.last_progress == 1
        assert [a.id for a in state.analyzed] == [ARTICLES[1].key]

    def test_analyzed_is_idempotent(self):
        once = reduce(_started(), _analyzed(1, current=1))
        twice = reduce(once, _analyzed(1, current=1))
        assert twice.analyzed_count == 1
        assert twice.analyzed == once.analyzed

    def test_analyzed_replaces_result(self):
        state = reduce(_started(), _analyzed(1, current=1))
        state = reduce(state, _analyzed(1, current=1, sentiment=Sentiment.BEARISH))
        assert state.analyzed[0].sentiment == Sentiment.BEARISH
        assert state.analyzed_count == 1

    def test_unknown_key_ignored(self):
        state = _started()
        assert reduce(state, _analyzed(7, current=1)) is state

    def test_progress_never_goes_back(self):
        state = reduce(_started(), _analyzed(1, current=2))
        state = reduce(state, _analyzed(2, current=1))
        assert state.last_progress == 2
        assert state.analyzed_count == 2

    def test_complete_freezes(self):
        state = _started()
        for i, n in enumerate((1, 2, 3), start=1):
            state = reduce(state, _analyzed(n, current=i))
        state = reduce(state, CompleteEvent(total=3, scan_id=11))

        assert state.phase == ScanPhase.COMPLETE
        assert state.scan_id == 11
        assert state.progress_pct == 100.0
        assert reduce(state, ErrorEvent(message="late")) is state
        assert reduce(state, _analyzed(1, current=1, sentiment=Sentiment.BEARISH)) is state

    def test_error_drops_pending(self):
        state = reduce(_started(), _analyzed(2, current=1))
        state = reduce(state, ErrorEvent(message="upstream exploded"))

        assert state.phase == ScanPhase.ERROR
        assert state.error == "upstream exploded"
        assert list(state.slots) == [ARTICLES[1].key]
        assert state.pending_keys == []

    def test_error_before_articles(self):
        state = reduce(ScanState(), ErrorEvent(message="API keys not configured: NEWS_API_KEY"))
        assert state.phase == ScanPhase.ERROR
        assert state.slots == {}


class TestFailAndCancel:
    def test_fail_matches_error_event(self):
        state = reduce(_started(), _analyzed(1, current=1))
        assert fail(state, "closed") == reduce(state, ErrorEvent(message="closed"))

    def test_cancel_keeps_partial_results(self):
        state = reduce(_started(), _analyzed(3, current=1))
        cancelled = cancel(state)

        assert cancelled.phase == ScanPhase.CANCELLED
        assert cancelled.message == "Scan cancelled"
        assert len(cancelled.analyzed) == 1
        assert reduce(cancelled, _analyzed(1, current=2)) is cancelled

    def test_cancel_after_complete_is_noop(self):
        done = reduce(_started(), CompleteEvent(total=3))
        assert cancel(done) is done
