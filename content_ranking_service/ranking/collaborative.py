"""Aggregate similar users' views into ranked recommendation candidates."""
from typing import Collection, Dict, Iterable, List, Sequence, Set, Tuple

from content_ranking_service.models.content import ContentItem


def count_viewers(
        views: Iterable[Tuple[str, str]],
        similar_user_ids: Collection[str],
        exclude_content_ids: Collection[str] = ()
) -> Dict[str, int]:
    """
    Count distinct similar users per content item.

    Args:
        views: (user_id, content_id) pairs
        similar_user_ids: Users whose views count
        exclude_content_ids: Content the requester already watched

    Returns:
        Dict mapping content id to number of distinct similar viewers
    """
    similar = set(similar_user_ids)
    excluded = set(exclude_content_ids)
    viewers: Dict[str, Set[str]] = {}

    for user_id, content_id in views:
        if user_id not in similar or content_id in excluded:
            continue
        viewers.setdefault(content_id, set()).add(user_id)

    return {content_id: len(users) for content_id, users in viewers.items()}


def rank_by_viewer_count(
        items: Sequence[ContentItem],
        viewer_counts: Dict[str, int],
        limit: int
) -> List[Tuple[ContentItem, int]]:
    """
    Order items by similar-viewer count, then by raw view count.

    Items absent from viewer_counts are dropped.

    Returns:
        List of (item, viewer_count) tuples, best first
    """
    scored = [
        (item, viewer_counts[item.id])
        for item in items
        if viewer_counts.get(item.id, 0) > 0
    ]
    scored.sort(key=lambda entry: (-entry[1], -(entry[0].view_count or 0)))
    return scored[:limit]
