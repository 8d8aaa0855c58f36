"""Service for what is trending right now."""
from datetime import datetime, timedelta, UTC
from typing import Callable, Dict, List
import logging

from content_ranking_service.ranking.predicate import PublishedSince, eligible
from content_ranking_service.ranking.query_builder import SortDirective
from content_ranking_service.ranking.trending import rank_by_trending
from content_ranking_service.repos import ContentRepository

logger = logging.getLogger(__name__)


class TrendingService:
    """Rank recently published content by trending score."""

    def __init__(
            self,
            content_repo: ContentRepository,
            window_multiplier: int = 3,
            clock: Callable[[], datetime] = lambda: datetime.now(UTC)
    ):
        self.content_repo = content_repo
        self.window_multiplier = window_multiplier
        self.clock = clock

    def trending_now(self, hours: int = 24, limit: int = 20) -> List[Dict]:
        """
        Eligible content published in the last hours, best trending score first.

        Args:
            hours: How far back publication may be
            limit: Maximum number of results

        Returns:
            List of content dicts, each with a trending_score
        """
        now = self.clock()
        window = self.content_repo.query_content(
            eligible(PublishedSince(now - timedelta(hours=hours))),
            SortDirective('view_count'),
            skip=0,
            take=limit * self.window_multiplier,
        )

        results = []
        for item, score in rank_by_trending(window, now=now)[:limit]:
            result = item.to_dict()
            result['trending_score'] = round(score, 4)
            results.append(result)

        logger.info(f"{len(results)} trending items from {len(window)} published in the last {hours}h")
        return results
