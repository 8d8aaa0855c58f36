"""Recorded searches and their click-through."""
from datetime import datetime, UTC

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String

from content_ranking_service.models.base import Base


class SearchHistory(Base):
    """One search request.

    Written once when the search runs, updated at most once when a
    result is clicked.
    """
    __tablename__ = 'search_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=True)
    session_id = Column(String(100), nullable=True)
    query = Column(String(500), nullable=False)
    filters = Column(JSON, nullable=True)
    result_count = Column(Integer, nullable=False, default=0)

    clicked_result_id = Column(String(36), nullable=True)
    time_to_click_ms = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index('idx_search_history_query_created', 'query', 'created_at'),
        Index('idx_search_history_user', 'user_id'),
        Index('idx_search_history_session', 'session_id'),
    )

    def __repr__(self):
        return f"<SearchHistory(id={self.id}, query='{self.query}', results={self.result_count})>"
