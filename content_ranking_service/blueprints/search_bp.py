"""Search content, track result clicks and suggest queries."""
import azure.functions as func
import logging
import math

from sqlalchemy.orm import Session

from content_ranking_service.blueprints.http_helpers import (
    error_response,
    int_param,
    json_body,
    json_response,
    request_identity,
)
from content_ranking_service.config import (
    get_facet_tag_limit,
    get_search_history_workers,
    get_trending_window_multiplier,
    search_history_enabled,
)
from content_ranking_service.exceptions import InvalidRequestError
from content_ranking_service.models.database import SessionLocal
from content_ranking_service.ranking.query_builder import SearchRequest
from content_ranking_service.repos import ContentRepository, SearchHistoryRepository
from content_ranking_service.services import (
    DetachedTaskRunner,
    SearchHistorySink,
    SearchInsightsService,
    SearchService,
)

# Initialize blueprint
bp = func.Blueprint()

# Background writer for search history (singleton pattern)
history_sink = SearchHistorySink(
    SessionLocal,
    runner=DetachedTaskRunner(max_workers=get_search_history_workers()),
    enabled=search_history_enabled()
)

logger = logging.getLogger(__name__)


def get_search_service(db: Session) -> SearchService:
    return SearchService(
        ContentRepository(db),
        history_sink=history_sink,
        trending_window_multiplier=get_trending_window_multiplier(),
        facet_tag_limit=get_facet_tag_limit()
    )


def get_insights_service(db: Session) -> SearchInsightsService:
    return SearchInsightsService(ContentRepository(db), SearchHistoryRepository(db))


@bp.route(route="search", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def search_content(req: func.HttpRequest) -> func.HttpResponse:
    """
    Search content.

    Body:
        - query: Free text (default: "")
        - filters: contentType, categories, tags, creators, duration, releaseDate, quality
        - sort: trending, recent, views or rating (default: trending)
        - page: Page number (default: 1)
        - limit: Page size (default: 20, max: 100)
        - user_id / session_id: Searcher identity for search history
    """
    try:
        try:
            body = json_body(req)
            search_request = SearchRequest.from_dict(body)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            response = get_search_service(db).search(
                search_request,
                identity=request_identity(req, body)
            )
        finally:
            db.close()

        return json_response(response)

    except Exception as e:
        logger.error(f"Error searching content: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="search/track-click", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def track_search_click(req: func.HttpRequest) -> func.HttpResponse:
    """
    Record which result of a search was clicked.

    Body:
        - query: Query of the search (required)
        - result_id: Clicked content id (required)
        - time_to_click_ms: Milliseconds from results to click
        - user_id / session_id: Searcher identity
    """
    try:
        try:
            body = json_body(req)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        query = body.get('query')
        result_id = body.get('result_id')
        if query is None or not result_id:
            return error_response("query and result_id are required", 400)

        time_to_click_ms = body.get('time_to_click_ms')
        if time_to_click_ms is not None:
            if isinstance(time_to_click_ms, bool) or not isinstance(time_to_click_ms, (int, float)):
                return error_response("time_to_click_ms must be a number", 400)
            if isinstance(time_to_click_ms, float) and not math.isfinite(time_to_click_ms):
                return error_response("time_to_click_ms must be a finite number", 400)
            time_to_click_ms = int(time_to_click_ms)

        history_sink.track_click(
            query=str(query),
            result_id=str(result_id),
            time_to_click_ms=time_to_click_ms,
            identity=request_identity(req, body)
        )

        return json_response({"status": "accepted"}, status_code=202)

    except Exception as e:
        logger.error(f"Error tracking search click: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="search/autocomplete", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def autocomplete(req: func.HttpRequest) -> func.HttpResponse:
    """
    Suggest completions for a partial query.

    Query Parameters:
        - q: Partial query (at least 2 characters)
        - limit: Number of suggestions (default: 10, max: 20)
        - user_id / session_id: For recent searches
    """
    try:
        try:
            limit = int_param(req, 'limit', default=10, minimum=1, maximum=20)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            response = get_insights_service(db).autocomplete(
                req.params.get('q', ''),
                identity=request_identity(req),
                limit=limit
            )
        finally:
            db.close()

        return json_response(response)

    except Exception as e:
        logger.error(f"Error building autocomplete: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="search/trending", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def trending_searches(req: func.HttpRequest) -> func.HttpResponse:
    """
    Most searched queries.

    Query Parameters:
        - days: Look-back window (default: 7, max: 90)
        - limit: Number of queries (default: 10, max: 50)
    """
    try:
        try:
            days = int_param(req, 'days', default=7, minimum=1, maximum=90)
            limit = int_param(req, 'limit', default=10, minimum=1, maximum=50)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            searches = get_insights_service(db).trending_searches(days=days, limit=limit)
        finally:
            db.close()

        return json_response({"days": days, "searches": searches})

    except Exception as e:
        logger.error(f"Error getting trending searches: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="search/recent", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def recent_searches(req: func.HttpRequest) -> func.HttpResponse:
    """
    Recent distinct queries of a user or session.

    Query Parameters:
        - user_id or session_id (or the x-session-id header)
        - limit: Number of queries (default: 5, max: 20)
    """
    try:
        try:
            limit = int_param(req, 'limit', default=5, minimum=1, maximum=20)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        identity = request_identity(req)
        if identity.is_anonymous:
            return error_response("user_id or session_id is required", 400)

        db = SessionLocal()
        try:
            searches = get_insights_service(db).recent_searches(identity, limit=limit)
        finally:
            db.close()

        return json_response({"searches": searches})

    except Exception as e:
        logger.error(f"Error getting recent searches: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)
