"""Service for search suggestions built from the catalog and search history."""
from datetime import datetime, timedelta, UTC
from typing import Callable, Dict, List, Optional
import logging

from content_ranking_service.repos import ContentRepository, SearchHistoryRepository
from content_ranking_service.services.search_history_sink import SearchIdentity

logger = logging.getLogger(__name__)

MIN_AUTOCOMPLETE_LENGTH = 2
SUGGESTIONS_PER_SOURCE = 5


class SearchInsightsService:
    """
    Autocomplete, trending searches and recent searches.
    """

    def __init__(
            self,
            content_repo: ContentRepository,
            history_repo: SearchHistoryRepository,
            clock: Callable[[], datetime] = lambda: datetime.now(UTC)
    ):
        self.content_repo = content_repo
        self.history_repo = history_repo
        self.clock = clock

    def trending_searches(self, days: int = 7, limit: int = 10) -> List[Dict]:
        """
        Most searched queries over the last days.

        Returns:
            List of {query, count} dicts, most searched first
        """
        since = self.clock() - timedelta(days=days)
        return [
            {'query': query, 'count': count}
            for query, count in self.history_repo.trending_queries(since, limit=limit)
        ]

    def recent_searches(self, identity: Optional[SearchIdentity], limit: int = 5) -> List[str]:
        """Distinct recent queries of a user, or of a session when there is no user."""
        if identity is None or identity.is_anonymous:
            return []
        return self.history_repo.recent_queries(
            user_id=identity.user_id,
            session_id=identity.session_id,
            limit=limit,
        )

    def suggestions(self, text: str, limit: int = 10) -> List[str]:
        """
        Titles, then tags, then categories matching text, without duplicates.

        Args:
            text: Partial query
            limit: Maximum number of suggestions

        Returns:
            List of suggestion strings
        """
        candidates = (
            self.content_repo.title_suggestions(text, limit=SUGGESTIONS_PER_SOURCE)
            + self.content_repo.tag_suggestions(text, limit=SUGGESTIONS_PER_SOURCE)
            + self.content_repo.category_suggestions(text, limit=SUGGESTIONS_PER_SOURCE)
        )
        # dict keeps first occurrence order
        return list(dict.fromkeys(candidates))[:limit]

    def autocomplete(self, text: str, identity: Optional[SearchIdentity] = None, limit: int = 10) -> Dict:
        """
        Suggestions for a partial query.

        Lookup failures are logged and answered with empty lists.

        Args:
            text: Partial query (at least two characters to get suggestions)
            identity: Who is typing, for recent searches
            limit: Maximum number of suggestions

        Returns:
            Dict with suggestions, trending and recent lists
        """
        text = (text or '').strip()
        empty = {'suggestions': [], 'trending': [], 'recent': []}
        if len(text) < MIN_AUTOCOMPLETE_LENGTH:
            return empty

        try:
            return {
                'suggestions': self.suggestions(text, limit=limit),
                'trending': [entry['query'] for entry in self.trending_searches(limit=SUGGESTIONS_PER_SOURCE)],
                'recent': self.recent_searches(identity, limit=SUGGESTIONS_PER_SOURCE),
            }
        except Exception as e:
            logger.error(f"Autocomplete failed for '{text}': {e}", exc_info=True)
            return empty
