"""Read-only queries over the append-only view log."""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from content_ranking_service.models import ViewRecord

logger = logging.getLogger(__name__)


class ViewHistoryRepository:
    """
    Repository for reading users' watch histories.
    """

    def __init__(self, db: Session):
        self.db = db

    # noinspection PyTypeChecker
    def watch_history(self, user_id: str, limit: int = 100) -> List[str]:
        """
        Distinct content ids a user watched, most recent first.

        Args:
            user_id: User to look up
            limit: Maximum number of content ids

        Returns:
            List of content ids
        """
        last_watched = func.max(ViewRecord.watched_at).label('last_watched')
        rows = (
            self.db.query(ViewRecord.content_id, last_watched)
            .filter(ViewRecord.user_id == user_id)
            .group_by(ViewRecord.content_id)
            .order_by(desc(last_watched), asc(ViewRecord.content_id))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    # noinspection PyTypeChecker
    def viewers_of(
            self,
            content_ids: Sequence[str],
            excluding_user_id: Optional[str] = None
    ) -> List[Tuple[str, str]]:
        """
        Distinct (user_id, content_id) pairs of logged-in views of the given content.

        Args:
            content_ids: Content to look up
            excluding_user_id: User to leave out (usually the requester)

        Returns:
            List of (user_id, content_id) tuples
        """
        if not content_ids:
            return []

        query = (
            self.db.query(ViewRecord.user_id, ViewRecord.content_id)
            .filter(
                ViewRecord.content_id.in_(content_ids),
                ViewRecord.user_id.is_not(None),
            )
        )
        if excluding_user_id is not None:
            query = query.filter(ViewRecord.user_id != excluding_user_id)

        rows = query.distinct().order_by(asc(ViewRecord.user_id), asc(ViewRecord.content_id)).all()
        return [(row[0], row[1]) for row in rows]

    # noinspection PyTypeChecker
    def views_by_users(self, user_ids: Sequence[str]) -> List[Tuple[str, str]]:
        """
        Distinct (user_id, content_id) pairs of everything the given users watched.

        Args:
            user_ids: Users to look up

        Returns:
            List of (user_id, content_id) tuples
        """
        if not user_ids:
            return []

        rows = (
            self.db.query(ViewRecord.user_id, ViewRecord.content_id)
            .filter(ViewRecord.user_id.in_(user_ids))
            .distinct()
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def last_watched(self, user_id: str) -> Optional[ViewRecord]:
        """Most recent view by a user, if any."""
        return (
            self.db.query(ViewRecord)
            .filter(ViewRecord.user_id == user_id)
            .order_by(desc(ViewRecord.watched_at), desc(ViewRecord.id))
            .first()
        )
