"""Score how similar one content item is to another from shared attributes."""
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Tuple
import logging

from content_ranking_service.models.content import ContentItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentFeatures:
    """Attributes of a content item that similarity scoring looks at."""
    id: str
    category_ids: FrozenSet[str]
    tag_ids: FrozenSet[str]
    creator_id: Optional[str]
    duration: Optional[int]
    view_count: int = 0

    @classmethod
    def from_item(cls, item: ContentItem) -> 'ContentFeatures':
        return cls(
            id=item.id,
            category_ids=frozenset(item.category_ids),
            tag_ids=frozenset(item.tag_ids),
            creator_id=item.creator_id,
            duration=item.duration,
            view_count=item.view_count or 0,
        )


class ContentSimilarityScorer:
    """Additive attribute-overlap score between a source and its candidates."""

    def __init__(
        self,
        category_weight: int = 5,
        tag_weight: int = 2,
        creator_weight: int = 3,
        duration_weight: int = 1,
        duration_tolerance: float = 0.2
    ):
        """
        Initialize the scorer.

        Args:
            category_weight: Points per shared category
            tag_weight: Points per shared tag
            creator_weight: Points for the same creator
            duration_weight: Points when durations are within tolerance
            duration_tolerance: Allowed relative duration difference
        """
        self.category_weight = category_weight
        self.tag_weight = tag_weight
        self.creator_weight = creator_weight
        self.duration_weight = duration_weight
        self.duration_tolerance = duration_tolerance

    def is_candidate(self, source: ContentFeatures, candidate: ContentFeatures) -> bool:
        """A candidate must share a category, a tag or the creator with the source."""
        if candidate.id == source.id:
            return False
        return bool(
            source.category_ids & candidate.category_ids
            or source.tag_ids & candidate.tag_ids
            or (source.creator_id is not None and candidate.creator_id == source.creator_id)
        )

    def similar_duration(self, source: ContentFeatures, candidate: ContentFeatures) -> bool:
        if not source.duration or source.duration <= 0 or not candidate.duration:
            return False
        low = source.duration * (1 - self.duration_tolerance)
        high = source.duration * (1 + self.duration_tolerance)
        return low <= candidate.duration <= high

    def score(self, source: ContentFeatures, candidate: ContentFeatures) -> int:
        """
        Score a candidate against the source.

        Args:
            source: Item recommendations are made for
            candidate: Item being scored

        Returns:
            Sum of category, tag, creator and duration points
        """
        score = len(source.category_ids & candidate.category_ids) * self.category_weight
        score += len(source.tag_ids & candidate.tag_ids) * self.tag_weight

        if source.creator_id is not None and candidate.creator_id == source.creator_id:
            score += self.creator_weight

        if self.similar_duration(source, candidate):
            score += self.duration_weight

        return score

    def rank(
        self,
        source: ContentItem,
        candidates: Sequence[ContentItem],
        limit: int
    ) -> List[Tuple[ContentItem, int]]:
        """
        Rank candidates by score, then by raw view count.

        Args:
            source: Item recommendations are made for
            candidates: Eligible items sharing at least one attribute
            limit: Maximum number of results

        Returns:
            List of (item, score) tuples, best first
        """
        source_features = ContentFeatures.from_item(source)

        scored = []
        for item in candidates:
            features = ContentFeatures.from_item(item)
            if not self.is_candidate(source_features, features):
                continue
            scored.append((item, self.score(source_features, features), features.view_count))

        # sorted() is stable, so remaining ties keep repository order
        scored.sort(key=lambda entry: (-entry[1], -entry[2]))

        logger.debug(f"Ranked {len(scored)} similarity candidates for {source.id}")
        return [(item, score) for item, score, _ in scored[:limit]]
