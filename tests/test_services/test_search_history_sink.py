"""Unit tests for content_ranking_service.services.search_history_sink."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from content_ranking_service.models import Base, SearchHistory
from content_ranking_service.repos import SearchHistoryRepository
from content_ranking_service.services.search_history_sink import SearchHistorySink, SearchIdentity
from content_ranking_service.services.tasks import DetachedTaskRunner


@pytest.fixture
def file_session_factory(tmp_path):
    """Session factory over a file database, so worker threads get their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'history.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def sink(file_session_factory):
    sink = SearchHistorySink(file_session_factory, runner=DetachedTaskRunner(max_workers=1))
    yield sink
    sink.shutdown(wait=True)


def _all_searches(session_factory):
    db = session_factory()
    try:
        return db.query(SearchHistory).order_by(SearchHistory.id).all()
    finally:
        db.close()


class TestSearchIdentity:
    """Tests for SearchIdentity."""

    def test_is_anonymous(self):
        """Test identity without user or session."""
        # Assert
        assert SearchIdentity().is_anonymous
        assert not SearchIdentity(session_id='s1').is_anonymous
        assert not SearchIdentity(user_id='u1').is_anonymous


class TestRecordSearch:
    """Tests for SearchHistorySink.record_search."""

    def test_search_is_written_in_background(self, sink, file_session_factory):
        """Test the record is appended by the runner."""
        # Act
        future = sink.record_search('gore', {'tags': ['tag-gore']}, 2, SearchIdentity(user_id='u1'))
        future.result(timeout=5)

        # Assert
        searches = _all_searches(file_session_factory)
        assert len(searches) == 1
        assert searches[0].query == 'gore'
        assert searches[0].filters == {'tags': ['tag-gore']}
        assert searches[0].result_count == 2
        assert searches[0].user_id == 'u1'

    def test_disabled(self, file_session_factory):
        """Test nothing is written when recording is disabled."""
        # Arrange
        sink = SearchHistorySink(file_session_factory, enabled=False)

        # Act
        future = sink.record_search('gore', {}, 2)
        sink.shutdown()

        # Assert
        assert future is None
        assert _all_searches(file_session_factory) == []

    def test_write_failure_is_only_logged(self, caplog):
        """Test a failing write never reaches the caller."""
        # Arrange
        def broken_session_factory():
            raise RuntimeError("database down")

        sink = SearchHistorySink(broken_session_factory, runner=DetachedTaskRunner(max_workers=1))

        # Act
        future = sink.record_search('gore', {}, 2)
        sink.shutdown(wait=True)

        # Assert
        assert isinstance(future.exception(), RuntimeError)
        assert "database down" in caplog.text


class TestTrackClick:
    """Tests for SearchHistorySink.track_click."""

    def test_click_is_attached(self, sink, file_session_factory):
        """Test the latest unresolved search gets the click."""
        # Arrange
        db = file_session_factory()
        try:
            SearchHistoryRepository(db).append('gore', {}, 2, session_id='s1')
        finally:
            db.close()

        # Act
        updated = sink.track_click('gore', 'c-x', 1200, SearchIdentity(session_id='s1')).result(timeout=5)

        # Assert
        assert updated is True
        search = _all_searches(file_session_factory)[0]
        assert search.clicked_result_id == 'c-x'
        assert search.time_to_click_ms == 1200

    def test_unmatched_click_is_noop(self, sink):
        """Test a click without a matching search is not an error."""
        # Act
        updated = sink.track_click('gore', 'c-x', 1200, SearchIdentity(session_id='s1')).result(timeout=5)

        # Assert
        assert updated is False

    def test_anonymous_click_is_ignored(self, sink):
        """Test a click without user or session is not scheduled."""
        # Act & Assert
        assert sink.track_click('gore', 'c-x', 1200) is None
