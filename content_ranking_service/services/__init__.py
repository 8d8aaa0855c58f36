"""Service classes"""

from .recommendation_service import RecommendationProvenance, RecommendationResult, RecommendationService
from .search_history_sink import SearchHistorySink, SearchIdentity
from .search_insights_service import SearchInsightsService
from .search_service import SearchService
from .tasks import DetachedTaskRunner
from .trending_service import TrendingService

__all__ = [
    "DetachedTaskRunner",
    "RecommendationProvenance",
    "RecommendationResult",
    "RecommendationService",
    "SearchHistorySink",
    "SearchIdentity",
    "SearchInsightsService",
    "SearchService",
    "TrendingService",
]
