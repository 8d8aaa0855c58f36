"""Fire-and-forget recording of searches and result clicks."""
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Dict, Optional
import logging

from sqlalchemy.orm import Session

from content_ranking_service.repos import SearchHistoryRepository
from content_ranking_service.services.tasks import DetachedTaskRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchIdentity:
    """Who searched: a logged-in user, an anonymous session, or neither."""
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None and self.session_id is None


class SearchHistorySink:
    """
    Records searches and clicks on a detached task.

    Each task opens its own database session, so nothing here is shared
    with the request that triggered it.
    """

    def __init__(
            self,
            session_factory: Callable[[], Session],
            runner: Optional[DetachedTaskRunner] = None,
            enabled: bool = True
    ):
        """
        Initialize the sink.

        Args:
            session_factory: Callable returning a new Session (e.g. SessionLocal)
            runner: Runner for the background writes
            enabled: When False, nothing is recorded
        """
        self.session_factory = session_factory
        self.runner = runner or DetachedTaskRunner()
        self.enabled = enabled

    def record_search(
            self,
            query: str,
            filters: Dict,
            result_count: int,
            identity: Optional[SearchIdentity] = None
    ) -> Optional[Future]:
        """
        Append a search history record in the background.

        Returns:
            Future of the write, or None when recording is disabled
        """
        if not self.enabled:
            return None

        identity = identity or SearchIdentity()
        return self.runner.spawn(
            self._append,
            query,
            filters,
            result_count,
            identity,
            description=f"search history append for '{query}'",
        )

    def track_click(
            self,
            query: str,
            result_id: str,
            time_to_click_ms: Optional[int],
            identity: Optional[SearchIdentity] = None
    ) -> Optional[Future]:
        """
        Attach a click to the latest matching search in the background.

        Returns:
            Future of the update, or None when nothing will be recorded
        """
        identity = identity or SearchIdentity()
        if not self.enabled:
            return None
        if identity.is_anonymous:
            logger.debug(f"Ignoring click on '{query}' without user or session")
            return None

        return self.runner.spawn(
            self._record_click,
            query,
            result_id,
            time_to_click_ms,
            identity,
            description=f"search click update for '{query}'",
        )

    def _append(self, query: str, filters: Dict, result_count: int, identity: SearchIdentity):
        db = self.session_factory()
        try:
            SearchHistoryRepository(db).append(
                query=query,
                filters=filters,
                result_count=result_count,
                user_id=identity.user_id,
                session_id=identity.session_id,
            )
        finally:
            db.close()

    def _record_click(
            self,
            query: str,
            result_id: str,
            time_to_click_ms: Optional[int],
            identity: SearchIdentity
    ) -> bool:
        db = self.session_factory()
        try:
            updated = SearchHistoryRepository(db).record_click(
                query=query,
                result_id=result_id,
                time_to_click_ms=time_to_click_ms,
                user_id=identity.user_id,
                session_id=identity.session_id,
            )
            if not updated:
                logger.debug(f"No unresolved search for '{query}' to attach click to")
            return updated
        finally:
            db.close()

    def shutdown(self, wait: bool = True):
        self.runner.shutdown(wait=wait)
