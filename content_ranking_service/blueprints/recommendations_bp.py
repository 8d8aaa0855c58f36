"""Similar content, user recommendations and trending content."""
import azure.functions as func
import logging

from sqlalchemy.orm import Session

from content_ranking_service.blueprints.http_helpers import error_response, int_param, json_response
from content_ranking_service.config import (
    get_max_similar_users,
    get_min_user_similarity,
    get_trending_window_multiplier,
    get_watch_history_limit,
)
from content_ranking_service.exceptions import ContentNotFoundError, InvalidRequestError
from content_ranking_service.models.database import SessionLocal
from content_ranking_service.ranking.user_similarity import UserSimilarityComputer
from content_ranking_service.repos import ContentRepository, ViewHistoryRepository
from content_ranking_service.services import RecommendationService, TrendingService

# Initialize blueprint
bp = func.Blueprint()

logger = logging.getLogger(__name__)


def get_recommendation_service(db: Session) -> RecommendationService:
    return RecommendationService(
        ContentRepository(db),
        ViewHistoryRepository(db),
        user_similarity=UserSimilarityComputer(
            min_similarity=get_min_user_similarity(),
            max_users=get_max_similar_users()
        ),
        history_limit=get_watch_history_limit()
    )


def get_trending_service(db: Session) -> TrendingService:
    return TrendingService(ContentRepository(db), window_multiplier=get_trending_window_multiplier())


@bp.route(route="content/{content_id}/similar", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_similar_content(req: func.HttpRequest) -> func.HttpResponse:
    """
    Get content similar to a content item.

    Query Parameters:
        - limit: Number of results (default: 20, max: 50)
    """
    try:
        content_id = req.route_params.get('content_id')

        if not content_id:
            return error_response("content_id is required", 400)

        try:
            limit = int_param(req, 'limit', default=20, minimum=1, maximum=50)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            results = get_recommendation_service(db).similar_content(content_id, limit=limit)
        except ContentNotFoundError as e:
            return error_response(str(e), 404)
        finally:
            db.close()

        response = {
            "content_id": content_id,
            "count": len(results),
            "results": results
        }

        return json_response(response)

    except Exception as e:
        logger.error(f"Error getting similar content: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/recommendations", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_user_recommendations(req: func.HttpRequest) -> func.HttpResponse:
    """
    Get recommendations for a user from similar users' watch histories.

    Query Parameters:
        - limit: Number of results (default: 50, max: 100)
    """
    try:
        user_id = req.route_params.get('user_id')

        if not user_id:
            return error_response("user_id is required", 400)

        try:
            limit = int_param(req, 'limit', default=50, minimum=1, maximum=100)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            result = get_recommendation_service(db).recommend_for_user(user_id, limit=limit)
        finally:
            db.close()

        response = {
            "user_id": user_id,
            "count": len(result.results),
            **result.to_dict()
        }

        return json_response(response)

    except Exception as e:
        logger.error(f"Error getting user recommendations: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="users/{user_id}/last-watched-similar", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_last_watched_similar(req: func.HttpRequest) -> func.HttpResponse:
    """
    Get content similar to what a user watched last.

    Query Parameters:
        - limit: Number of results (default: 10, max: 50)
    """
    try:
        user_id = req.route_params.get('user_id')

        if not user_id:
            return error_response("user_id is required", 400)

        try:
            limit = int_param(req, 'limit', default=10, minimum=1, maximum=50)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            similar = get_recommendation_service(db).last_watched_similar(user_id, limit=limit)
        finally:
            db.close()

        response = {
            "user_id": user_id,
            "last_watched_title": similar['last_watched_title'],
            "count": len(similar['results']),
            "results": similar['results']
        }

        return json_response(response)

    except Exception as e:
        logger.error(f"Error getting last watched similar content: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


@bp.route(route="recommendations/trending-now", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def get_trending_now(req: func.HttpRequest) -> func.HttpResponse:
    """
    Get recently published content ranked by trending score.

    Query Parameters:
        - hours: Publication window (default: 24, max: 168)
        - limit: Number of results (default: 20, max: 50)
    """
    try:
        try:
            hours = int_param(req, 'hours', default=24, minimum=1, maximum=168)
            limit = int_param(req, 'limit', default=20, minimum=1, maximum=50)
        except InvalidRequestError as e:
            return error_response(str(e), 400)

        db = SessionLocal()
        try:
            results = get_trending_service(db).trending_now(hours=hours, limit=limit)
        finally:
            db.close()

        return json_response({"hours": hours, "count": len(results), "results": results})

    except Exception as e:
        logger.error(f"Error getting trending content: {str(e)}", exc_info=True)
        return error_response("Internal server error", 500)


# noinspection PyUnusedLocal
@bp.route(route="recommendations/health", methods=["GET"])
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint."""
    return json_response({
        "status": "healthy",
        "service": "content-ranking-service",
        "version": "1.0.0"
    })
