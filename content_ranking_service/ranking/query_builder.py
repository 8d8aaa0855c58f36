"""Turn a free-text query plus structured filters into a predicate and sort."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import math

from content_ranking_service.exceptions import InvalidSearchRequestError
from content_ranking_service.models.content import CONTENT_TYPES
from content_ranking_service.ranking.predicate import (
    AllOf,
    CategoryIn,
    CreatorIn,
    DateRange,
    DurationRange,
    QualityIn,
    TagIn,
    TextMatch,
    TypeIn,
    eligible,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Quality label -> resolution substrings
QUALITY_RESOLUTIONS: Dict[str, Tuple[str, ...]] = {
    '720p': ('1280x720',),
    '1080p': ('1920x1080',),
    '4k': ('3840x2160', '4096x2160'),
}

_TYPE_ALIASES = {'live_stream': 'live'}


class SortKey(str, Enum):
    TRENDING = 'trending'
    RECENT = 'recent'
    VIEWS = 'views'
    RATING = 'rating'


@dataclass(frozen=True)
class SortDirective:
    """Column to order by, descending. Ties fall back to content id."""
    field: str
    descending: bool = True


_SORT_DIRECTIVES = {
    # Trending orders the candidate window by raw views, then re-scores it
    SortKey.TRENDING: SortDirective('view_count'),
    SortKey.RECENT: SortDirective('published_at'),
    SortKey.VIEWS: SortDirective('view_count'),
    SortKey.RATING: SortDirective('like_count'),
}


@dataclass(frozen=True)
class SearchFilters:
    content_types: Tuple[str, ...] = ()
    category_ids: Tuple[str, ...] = ()
    tag_ids: Tuple[str, ...] = ()
    creator_ids: Tuple[str, ...] = ()
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    released_from: Optional[datetime] = None
    released_to: Optional[datetime] = None
    quality: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot stored alongside the search history record."""
        snapshot: Dict[str, Any] = {}
        if self.content_types:
            snapshot['content_types'] = list(self.content_types)
        if self.category_ids:
            snapshot['categories'] = list(self.category_ids)
        if self.tag_ids:
            snapshot['tags'] = list(self.tag_ids)
        if self.creator_ids:
            snapshot['creators'] = list(self.creator_ids)
        if self.min_duration is not None or self.max_duration is not None:
            snapshot['duration'] = {'min': self.min_duration, 'max': self.max_duration}
        if self.released_from or self.released_to:
            snapshot['release_date'] = {
                'from': self.released_from.isoformat() if self.released_from else None,
                'to': self.released_to.isoformat() if self.released_to else None,
            }
        if self.quality:
            snapshot['quality'] = list(self.quality)
        return snapshot


@dataclass(frozen=True)
class SearchRequest:
    query: str = ''
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort: SortKey = SortKey.TRENDING
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_dict(cls, body: Optional[Dict[str, Any]]) -> 'SearchRequest':
        """
        Parse a search request body.

        Unknown keys and unrecognised filter values are ignored. Paging and
        sort values outside their allowed range raise InvalidSearchRequestError.

        Args:
            body: Decoded JSON body (None is treated as empty)

        Returns:
            SearchRequest
        """
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise InvalidSearchRequestError("request body must be a JSON object")

        query = body.get('query')
        query = '' if query is None else str(query)

        raw_filters = body.get('filters')
        if raw_filters is None:
            raw_filters = {}
        if not isinstance(raw_filters, dict):
            raise InvalidSearchRequestError("filters must be an object")

        raw_sort = body.get('sort') or SortKey.TRENDING.value
        try:
            sort = SortKey(str(raw_sort).lower())
        except ValueError:
            allowed = ', '.join(key.value for key in SortKey)
            raise InvalidSearchRequestError(f"sort must be one of: {allowed}")

        page = _parse_int(body.get('page'), 'page', default=1)
        limit = _parse_int(body.get('limit'), 'limit', default=DEFAULT_PAGE_SIZE)

        if page < 1:
            raise InvalidSearchRequestError("page must be at least 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidSearchRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        return cls(
            query=query,
            filters=parse_filters(raw_filters),
            sort=sort,
            page=page,
            limit=limit,
        )


@dataclass(frozen=True)
class SearchQuery:
    predicate: AllOf
    sort: SortKey
    directive: SortDirective

    @property
    def needs_trending_score(self) -> bool:
        return self.sort is SortKey.TRENDING


def _parse_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidSearchRequestError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidSearchRequestError(f"{name} must be an integer")


def _string_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value if item not in (None, ''))


def _non_negative_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value < 0:
        return None
    return int(value)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"Ignoring unparseable date filter: {value!r}")
        return None


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _normalise_types(values: Iterable[str]) -> Tuple[str, ...]:
    types: List[str] = []
    for value in values:
        name = value.lower()
        name = _TYPE_ALIASES.get(name, name)
        if name in CONTENT_TYPES and name not in types:
            types.append(name)
    return tuple(types)


def _normalise_quality(values: Iterable[str]) -> Tuple[str, ...]:
    labels: List[str] = []
    for value in values:
        if value.lower() in QUALITY_RESOLUTIONS and value not in labels:
            labels.append(value)
    return tuple(labels)


def parse_filters(raw: Dict[str, Any]) -> SearchFilters:
    """
    Parse structured filters, accepting camelCase and snake_case keys.

    Args:
        raw: Filters object from the request body

    Returns:
        SearchFilters with unrecognised values dropped
    """
    duration = _first(raw, 'duration')
    duration = duration if isinstance(duration, dict) else {}

    release = _first(raw, 'releaseDate', 'release_date')
    release = release if isinstance(release, dict) else {}

    return SearchFilters(
        content_types=_normalise_types(_string_list(_first(raw, 'contentType', 'content_type', 'types'))),
        category_ids=_string_list(_first(raw, 'categories')),
        tag_ids=_string_list(_first(raw, 'tags')),
        creator_ids=_string_list(_first(raw, 'creators')),
        min_duration=_non_negative_int(duration.get('min')),
        max_duration=_non_negative_int(duration.get('max')),
        released_from=_parse_datetime(release.get('from')),
        released_to=_parse_datetime(release.get('to')),
        quality=_normalise_quality(_string_list(_first(raw, 'quality'))),
    )


def build_predicate(query: str, filters: SearchFilters) -> AllOf:
    """
    Build the predicate for a search.

    The free-text clause and every structured filter are AND-ed with the
    eligibility clause. Absent filters add nothing, so an empty query with
    no filters matches all eligible content.

    Args:
        query: Free-text query (may be empty)
        filters: Parsed filters

    Returns:
        AllOf predicate
    """
    predicate = eligible()

    text = query.strip()
    if text:
        predicate = predicate.with_clause(TextMatch(text))

    if filters.content_types:
        predicate = predicate.with_clause(TypeIn(filters.content_types))
    if filters.category_ids:
        predicate = predicate.with_clause(CategoryIn(filters.category_ids))
    if filters.tag_ids:
        predicate = predicate.with_clause(TagIn(filters.tag_ids))
    if filters.creator_ids:
        predicate = predicate.with_clause(CreatorIn(filters.creator_ids))
    if filters.min_duration is not None or filters.max_duration is not None:
        predicate = predicate.with_clause(DurationRange(filters.min_duration, filters.max_duration))
    if filters.released_from is not None or filters.released_to is not None:
        predicate = predicate.with_clause(DateRange(filters.released_from, filters.released_to))

    resolutions: List[str] = []
    for label in filters.quality:
        resolutions.extend(QUALITY_RESOLUTIONS[label.lower()])
    if resolutions:
        predicate = predicate.with_clause(QualityIn(tuple(resolutions)))

    return predicate


def build_search_query(request: SearchRequest) -> SearchQuery:
    """Predicate and sort directive for a parsed search request."""
    return SearchQuery(
        predicate=build_predicate(request.query, request.filters),
        sort=request.sort,
        directive=_SORT_DIRECTIVES[request.sort],
    )
