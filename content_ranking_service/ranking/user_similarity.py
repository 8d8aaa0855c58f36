"""Pairwise watch-history similarity between users."""
from dataclasses import dataclass
from typing import Dict, List, Sequence
import logging

import numpy as np
from sklearn.preprocessing import MultiLabelBinarizer  # type: ignore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarUser:
    user_id: str
    similarity: float


class UserSimilarityComputer:
    """Find users whose watch histories overlap the requester's."""

    def __init__(self, min_similarity: float = 0.10, max_users: int = 50):
        """
        Initialize the computer.

        Args:
            min_similarity: Users below this Jaccard similarity are dropped
            max_users: At most this many of the most similar users are kept
        """
        self.min_similarity = min_similarity
        self.max_users = max_users

    def compute_similarities(
        self,
        requester_history: Sequence[str],
        candidate_histories: Dict[str, Sequence[str]]
    ) -> Dict[str, float]:
        """
        Jaccard similarity of every candidate history to the requester's.

        Histories are multi-hot encoded over the union of all content ids,
        so intersections and unions become row sums.

        Args:
            requester_history: Content ids watched by the requester
            candidate_histories: Content ids watched, keyed by candidate user id

        Returns:
            Dict mapping candidate user id to similarity in [0, 1]
        """
        if not candidate_histories:
            return {}

        user_ids = list(candidate_histories)
        histories = [set(candidate_histories[user_id]) for user_id in user_ids]
        requester = set(requester_history)

        classes = sorted(requester.union(*histories))
        if not classes:
            return {user_id: 0.0 for user_id in user_ids}

        encoder = MultiLabelBinarizer(classes=classes)
        matrix = encoder.fit_transform(histories).astype(np.int64)
        requester_vector = encoder.transform([requester])[0].astype(np.int64)

        intersections = matrix @ requester_vector
        unions = requester_vector.sum() + matrix.sum(axis=1) - intersections

        similarities = {}
        for user_id, inter, union in zip(user_ids, intersections, unions):
            similarities[user_id] = int(inter) / int(union) if union > 0 else 0.0

        return similarities

    def select_similar_users(
        self,
        requester_history: Sequence[str],
        candidate_histories: Dict[str, Sequence[str]]
    ) -> List[SimilarUser]:
        """
        Keep candidates at or above the threshold, most similar first.

        Args:
            requester_history: Content ids watched by the requester
            candidate_histories: Content ids watched, keyed by candidate user id

        Returns:
            At most max_users SimilarUser entries
        """
        similarities = self.compute_similarities(requester_history, candidate_histories)

        retained = [
            SimilarUser(user_id=user_id, similarity=similarity)
            for user_id, similarity in similarities.items()
            if similarity >= self.min_similarity
        ]
        retained.sort(key=lambda user: (-user.similarity, user.user_id))

        logger.info(
            f"{len(retained)}/{len(similarities)} candidate users at or above "
            f"similarity {self.min_similarity:.2f}"
        )
        return retained[:self.max_users]
