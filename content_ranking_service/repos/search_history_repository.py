"""Repository for recorded searches and click-through."""

import logging
from datetime import datetime, UTC
from typing import Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from content_ranking_service.models import SearchHistory

logger = logging.getLogger(__name__)


class SearchHistoryRepository:
    """
    Repository for appending and reading search history.
    """

    def __init__(self, db: Session):
        self.db = db

    def _for_identity(self, query, user_id: Optional[str], session_id: Optional[str]):
        """Match on user when known, otherwise on session."""
        if user_id is not None:
            return query.filter(SearchHistory.user_id == user_id)
        return query.filter(SearchHistory.session_id == session_id)

    def append(
            self,
            query: str,
            filters: Optional[Dict],
            result_count: int,
            user_id: Optional[str] = None,
            session_id: Optional[str] = None
    ) -> SearchHistory:
        """
        Store one search.

        Args:
            query: Query text as submitted
            filters: Snapshot of the structured filters
            result_count: Total number of matches
            user_id: Searching user, if logged in
            session_id: Session of an anonymous searcher

        Returns:
            Stored SearchHistory record
        """
        record = SearchHistory(
            user_id=user_id,
            session_id=session_id,
            query=query,
            filters=filters or {},
            result_count=result_count,
            created_at=datetime.now(UTC),
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        return record

    def find_latest_unclicked(
            self,
            query: str,
            user_id: Optional[str] = None,
            session_id: Optional[str] = None
    ) -> Optional[SearchHistory]:
        """Most recent search for query by this user/session without a click yet."""
        if user_id is None and session_id is None:
            return None

        q = (
            self.db.query(SearchHistory)
            .filter(
                SearchHistory.query == query,
                SearchHistory.clicked_result_id.is_(None),
            )
        )
        return (
            self._for_identity(q, user_id, session_id)
            .order_by(desc(SearchHistory.created_at), desc(SearchHistory.id))
            .first()
        )

    def record_click(
            self,
            query: str,
            result_id: str,
            time_to_click_ms: Optional[int],
            user_id: Optional[str] = None,
            session_id: Optional[str] = None
    ) -> bool:
        """
        Attach a click to the latest unresolved search.

        Returns:
            True if a search was updated, False if none matched
        """
        record = self.find_latest_unclicked(query, user_id=user_id, session_id=session_id)
        if record is None:
            return False

        record.clicked_result_id = result_id  # type: ignore[assignment]
        record.time_to_click_ms = time_to_click_ms  # type: ignore[assignment]
        self.db.commit()

        return True

    # noinspection PyTypeChecker
    def trending_queries(self, since: datetime, limit: int = 10) -> List[Tuple[str, int]]:
        """
        Most frequent queries since a point in time.

        Args:
            since: Lower bound on created_at
            limit: Maximum number of queries

        Returns:
            List of (query, count) tuples, most frequent first
        """
        if since.tzinfo is not None:
            since = since.astimezone(UTC).replace(tzinfo=None)

        count = func.count(SearchHistory.id).label('search_count')
        rows = (
            self.db.query(SearchHistory.query, count)
            .filter(SearchHistory.created_at >= since)
            .group_by(SearchHistory.query)
            .order_by(desc(count), asc(SearchHistory.query))
            .limit(limit)
            .all()
        )
        return [(row[0], int(row[1])) for row in rows]

    # noinspection PyTypeChecker
    def recent_queries(
            self,
            user_id: Optional[str] = None,
            session_id: Optional[str] = None,
            limit: int = 5
    ) -> List[str]:
        """Distinct queries of one user or session, most recent first."""
        if user_id is None and session_id is None:
            return []

        last_searched = func.max(SearchHistory.id).label('last_searched')
        q = self.db.query(SearchHistory.query, last_searched)
        rows = (
            self._for_identity(q, user_id, session_id)
            .group_by(SearchHistory.query)
            .order_by(desc(last_searched))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]
