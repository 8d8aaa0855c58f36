"""Service for filtered, sorted and faceted content search."""
import math
from datetime import datetime, UTC
from typing import Callable, Dict, List, Optional
import logging

from content_ranking_service.models import ContentItem
from content_ranking_service.ranking.facets import DEFAULT_TAG_LIMIT, Facets, compute_facets
from content_ranking_service.ranking.query_builder import SearchQuery, SearchRequest, build_search_query
from content_ranking_service.ranking.trending import rank_by_trending
from content_ranking_service.repos import ContentRepository
from content_ranking_service.services.search_history_sink import SearchHistorySink, SearchIdentity

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SearchService:
    """
    Search the content catalog.

    Every call re-reads the repository; nothing is cached between requests.
    """

    def __init__(
            self,
            content_repo: ContentRepository,
            history_sink: Optional[SearchHistorySink] = None,
            trending_window_multiplier: int = 3,
            facet_tag_limit: int = DEFAULT_TAG_LIMIT,
            clock: Callable[[], datetime] = _utc_now
    ):
        """
        Initialize the search service.

        Args:
            content_repo: Repository to query
            history_sink: Where searches are recorded (None disables recording)
            trending_window_multiplier: Trending candidate window as a multiple of the page size
            facet_tag_limit: Maximum number of tag facets
            clock: Returns the current time
        """
        self.content_repo = content_repo
        self.history_sink = history_sink
        self.trending_window_multiplier = trending_window_multiplier
        self.facet_tag_limit = facet_tag_limit
        self.clock = clock

    def _fetch_page(self, search_query: SearchQuery, request: SearchRequest) -> List[ContentItem]:
        if not search_query.needs_trending_score:
            return self.content_repo.query_content(
                search_query.predicate,
                search_query.directive,
                skip=request.skip,
                take=request.limit,
            )

        # Score a fixed window of the most viewed matches, then page inside it.
        # Items outside the window are never ranked.
        window = self.content_repo.query_content(
            search_query.predicate,
            search_query.directive,
            skip=0,
            take=request.limit * self.trending_window_multiplier,
        )
        ranked = rank_by_trending(window, now=self.clock())
        return [item for item, _ in ranked[request.skip:request.skip + request.limit]]

    def compute_facets(self, search_query: SearchQuery, total: int) -> Facets:
        """
        Category and tag facets over the full match set, ignoring paging.

        Args:
            search_query: Built search query
            total: Number of matches (facets are skipped when zero)

        Returns:
            Facets
        """
        if total == 0:
            return Facets()

        content_ids = self.content_repo.matching_ids(search_query.predicate)
        return compute_facets(
            self.content_repo.category_links(content_ids),
            self.content_repo.tag_links(content_ids),
            tag_limit=self.facet_tag_limit,
        )

    def search(self, request: SearchRequest, identity: Optional[SearchIdentity] = None) -> Dict:
        """
        Run a search.

        Args:
            request: Parsed search request
            identity: Who is searching, for search history

        Returns:
            Dict with results, total, page, limit, total_pages and facets
        """
        search_query = build_search_query(request)

        total = self.content_repo.count_content(search_query.predicate)
        page_items = self._fetch_page(search_query, request)
        facets = self.compute_facets(search_query, total)

        logger.info(
            f"Search '{request.query}' sort={request.sort.value} page={request.page}: "
            f"{len(page_items)} of {total} results"
        )

        self._record(request, total, identity)

        return {
            'results': [item.to_dict() for item in page_items],
            'total': total,
            'page': request.page,
            'limit': request.limit,
            'total_pages': math.ceil(total / request.limit),
            'facets': facets.to_dict(),
        }

    def _record(self, request: SearchRequest, total: int, identity: Optional[SearchIdentity]):
        """Hand the search to the history sink. Never raises."""
        if self.history_sink is None:
            return

        try:
            self.history_sink.record_search(
                query=request.query,
                filters=request.filters.to_dict(),
                result_count=total,
                identity=identity,
            )
        except Exception as e:
            logger.error(f"Failed to schedule search history write: {e}", exc_info=True)
