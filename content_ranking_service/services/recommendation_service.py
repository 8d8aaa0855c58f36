"""Service for content-based and collaborative recommendations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import logging

from content_ranking_service.exceptions import ContentNotFoundError
from content_ranking_service.models import ContentItem
from content_ranking_service.ranking.collaborative import count_viewers, rank_by_viewer_count
from content_ranking_service.ranking.content_similarity import ContentSimilarityScorer
from content_ranking_service.ranking.user_similarity import UserSimilarityComputer
from content_ranking_service.repos import ContentRepository, ViewHistoryRepository

logger = logging.getLogger(__name__)


class RecommendationProvenance(str, Enum):
    """How a set of user recommendations was produced."""
    PERSONALIZED = 'personalized'
    COLD_START = 'cold-start'
    FALLBACK = 'fallback'


@dataclass
class RecommendationResult:
    provenance: RecommendationProvenance
    results: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'results': self.results,
            'provenance': self.provenance.value,
        }


class RecommendationService:
    """
    Recommend content similar to an item, or for a user from similar users' views.
    """

    def __init__(
            self,
            content_repo: ContentRepository,
            view_repo: ViewHistoryRepository,
            scorer: Optional[ContentSimilarityScorer] = None,
            user_similarity: Optional[UserSimilarityComputer] = None,
            history_limit: int = 100
    ):
        """
        Initialize the recommendation service.

        Args:
            content_repo: Repository over the content catalog
            view_repo: Repository over the view log
            scorer: Content-similarity scorer
            user_similarity: Watch-history similarity computer
            history_limit: Most recent distinct items read per watch history
        """
        self.content_repo = content_repo
        self.view_repo = view_repo
        self.scorer = scorer or ContentSimilarityScorer()
        self.user_similarity = user_similarity or UserSimilarityComputer()
        self.history_limit = history_limit

    def similar_content(self, content_id: str, limit: int = 20) -> List[Dict]:
        """
        Get content similar to a source item.

        Args:
            content_id: Source content id
            limit: Maximum number of results

        Returns:
            List of content dicts, each with a similarity_score

        Raises:
            ContentNotFoundError: If the source item does not exist
        """
        source = self.content_repo.get_content_by_id(content_id)
        if source is None:
            logger.warning(f"Similarity requested for unknown content {content_id}")
            raise ContentNotFoundError(content_id)

        return self._rank_similar(source, limit)

    def _rank_similar(self, source: ContentItem, limit: int) -> List[Dict]:
        candidates = self.content_repo.similarity_candidates(source)
        ranked = self.scorer.rank(source, candidates, limit)

        logger.info(f"{len(ranked)} similar items for {source.id} from {len(candidates)} candidates")
        return [_with_score(item, 'similarity_score', score) for item, score in ranked]

    def recommend_for_user(self, user_id: str, limit: int = 50) -> RecommendationResult:
        """
        Recommend content for a user from what similar users watched.

        Args:
            user_id: Requesting user
            limit: Maximum number of results

        Returns:
            RecommendationResult tagged personalized, cold-start or fallback
        """
        history = self.view_repo.watch_history(user_id, limit=self.history_limit)

        if not history:
            logger.warning(f"No watch history for user {user_id}, serving most viewed content")
            items = self.content_repo.most_viewed(limit)
            return RecommendationResult(
                provenance=RecommendationProvenance.COLD_START,
                results=[item.to_dict() for item in items],
            )

        similar_users = self._find_similar_users(user_id, history)

        if not similar_users:
            logger.warning(f"No similar users for user {user_id}, serving most viewed unwatched content")
            items = self.content_repo.most_viewed(limit, exclude_ids=history)
            return RecommendationResult(
                provenance=RecommendationProvenance.FALLBACK,
                results=[item.to_dict() for item in items],
            )

        similar_ids = [user.user_id for user in similar_users]
        viewer_counts = count_viewers(
            self.view_repo.views_by_users(similar_ids),
            similar_ids,
            exclude_content_ids=history,
        )
        candidates = self.content_repo.get_eligible_by_ids(sorted(viewer_counts))
        ranked = rank_by_viewer_count(candidates, viewer_counts, limit)

        logger.info(
            f"✓ {len(ranked)} personalized recommendations for user {user_id} "
            f"from {len(similar_users)} similar users"
        )
        return RecommendationResult(
            provenance=RecommendationProvenance.PERSONALIZED,
            results=[_with_score(item, 'similar_viewers', count) for item, count in ranked],
        )

    def _find_similar_users(self, user_id: str, history: List[str]):
        overlaps = self.view_repo.viewers_of(history, excluding_user_id=user_id)
        candidate_ids = sorted({other_id for other_id, _ in overlaps})
        logger.debug(f"{len(candidate_ids)} users share watch history with user {user_id}")

        # Each candidate's own history is needed for the union size.
        candidate_histories = {
            other_id: self.view_repo.watch_history(other_id, limit=self.history_limit)
            for other_id in candidate_ids
        }
        return self.user_similarity.select_similar_users(history, candidate_histories)

    def last_watched_similar(self, user_id: str, limit: int = 10) -> Dict:
        """
        Similar content for the item a user watched most recently.

        Returns:
            Dict with results and last_watched_title (None when there is nothing to base it on)
        """
        last_view = self.view_repo.last_watched(user_id)
        if last_view is None:
            return {'results': [], 'last_watched_title': None}

        source = self.content_repo.get_content_by_id(last_view.content_id)
        if source is None:
            logger.warning(f"Last watched content {last_view.content_id} of user {user_id} no longer exists")
            return {'results': [], 'last_watched_title': None}

        return {
            'results': self._rank_similar(source, limit),
            'last_watched_title': source.title,
        }


def _with_score(item: ContentItem, key: str, score) -> Dict:
    result = item.to_dict()
    result[key] = score
    return result
