"""Unit tests for content_ranking_service.models.base."""
from sqlalchemy.orm import DeclarativeMeta

from content_ranking_service.models.base import Base


class TestBase:
    """Tests for Base declarative base."""

    def test_base_is_declarative_base(self):
        """Test that Base is a declarative base."""
        # Assert
        assert hasattr(Base, 'metadata')
        assert hasattr(Base, 'registry')
        assert isinstance(Base, DeclarativeMeta)

    def test_all_tables_registered(self):
        """Test that every model table is part of the metadata."""
        # Assert
        assert set(Base.metadata.tables) >= {
            'creators', 'categories', 'tags', 'content',
            'content_categories', 'content_tags', 'views', 'search_history',
        }
