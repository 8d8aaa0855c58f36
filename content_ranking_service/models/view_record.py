"""Append-only record of a content view."""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Index, Integer, String

from content_ranking_service.models.base import Base


class ViewRecord(Base):
    """One view of one content item.

    Anonymous views carry no user_id and never take part in
    collaborative filtering.
    """
    __tablename__ = 'views'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=True)
    content_id = Column(String(36), nullable=False)
    watched_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    duration = Column(Integer, nullable=True)  # seconds watched

    __table_args__ = (
        Index('idx_views_user_watched', 'user_id', 'watched_at'),
        Index('idx_views_content', 'content_id'),
    )

    def __repr__(self):
        return f"<ViewRecord(user_id={self.user_id!r}, content_id='{self.content_id}')>"
