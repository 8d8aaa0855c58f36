"""Repository classes"""

from content_ranking_service.repos.content_repository import ContentRepository
from content_ranking_service.repos.search_history_repository import SearchHistoryRepository
from content_ranking_service.repos.view_history_repository import ViewHistoryRepository

__all__ = [
    "ContentRepository",
    "SearchHistoryRepository",
    "ViewHistoryRepository",
]
