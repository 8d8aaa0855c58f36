"""Recency and engagement weighted trending score."""
import math
from datetime import datetime, UTC
from typing import List, Optional, Sequence, Tuple, TypeVar
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Hours over which the exponential decay runs (one week)
DECAY_HOURS = 168.0

T = TypeVar('T')


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as read back from the database) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def hours_since(published_at: Optional[datetime], now: datetime) -> float:
    """
    Hours between publication and now, floored at zero.

    Content without a publication date counts as published just now.
    """
    if published_at is None:
        return 0.0
    delta = as_utc(now) - as_utc(published_at)
    return max(0.0, delta.total_seconds() / 3600.0)


def trending_score(
        view_count: int,
        like_count: int,
        published_at: Optional[datetime],
        now: datetime
) -> float:
    """
    Compute the trending score of one content item.

    score = view_velocity * (1 + engagement) * exp(-hours / 168), where
    view_velocity is views per hour (hours floored at 1) and engagement
    is likes per view.

    Args:
        view_count: Total views
        like_count: Total likes
        published_at: Publication time (None counts as now)
        now: Reference time

    Returns:
        Trending score (0 when there are no views)
    """
    hours = hours_since(published_at, now)
    view_velocity = view_count / max(hours, 1.0)
    engagement = like_count / view_count if view_count > 0 else 0.0
    time_decay = math.exp(-hours / DECAY_HOURS)
    return view_velocity * (1 + engagement) * time_decay


def compute_trending_scores(
        view_counts: Sequence[int],
        like_counts: Sequence[int],
        hours: Sequence[float]
) -> np.ndarray:
    """
    Vectorised trending score over a candidate window.

    Args:
        view_counts: Views per candidate
        like_counts: Likes per candidate
        hours: Hours since publication per candidate (already floored at 0)

    Returns:
        Array of scores, same order as the inputs
    """
    views = np.asarray(view_counts, dtype=float)
    likes = np.asarray(like_counts, dtype=float)
    hours_arr = np.asarray(hours, dtype=float)

    view_velocity = views / np.maximum(hours_arr, 1.0)
    engagement = np.divide(likes, views, out=np.zeros_like(views), where=views > 0)
    time_decay = np.exp(-hours_arr / DECAY_HOURS)

    return view_velocity * (1.0 + engagement) * time_decay


def rank_by_trending(items: Sequence[T], now: Optional[datetime] = None) -> List[Tuple[T, float]]:
    """
    Sort content items by trending score, highest first.

    The sort is stable: equal scores keep their incoming order, which for
    a search window is raw view count descending.

    Args:
        items: Objects with view_count, like_count and published_at
        now: Reference time (defaults to the current UTC time)

    Returns:
        List of (item, score) tuples
    """
    if not items:
        return []

    now = now or datetime.now(UTC)
    scores = compute_trending_scores(
        [item.view_count or 0 for item in items],
        [item.like_count or 0 for item in items],
        [hours_since(item.published_at, now) for item in items],
    )

    order = np.argsort(-scores, kind='stable')
    logger.debug(f"Scored {len(items)} trending candidates, top score {scores[order[0]]:.3f}")

    return [(items[i], float(scores[i])) for i in order]
