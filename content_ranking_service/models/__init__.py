"""SQLAlchemy models"""

from content_ranking_service.models.base import Base
from content_ranking_service.models.content import ContentItem, content_categories, content_tags
from content_ranking_service.models.search_history import SearchHistory
from content_ranking_service.models.taxonomy import Category, Creator, Tag
from content_ranking_service.models.view_record import ViewRecord

__all__ = [
    "Base",
    "Category",
    "ContentItem",
    "Creator",
    "SearchHistory",
    "Tag",
    "ViewRecord",
    "content_categories",
    "content_tags",
]
