"""Creators, categories and tags referenced by content."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from content_ranking_service.models.base import Base


class Creator(Base):
    """Creator profile, only the fields search and ranking read."""
    __tablename__ = 'creators'

    id = Column(String(36), primary_key=True)
    handle = Column(String(100), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Creator(id='{self.id}', handle='{self.handle}')>"


class Category(Base):
    """Content category.

    Only active, non-deleted categories show up in facets and autocomplete.
    """
    __tablename__ = 'categories'

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Category(id='{self.id}', name='{self.name}')>"


class Tag(Base):
    """Free-form tag. usage_count orders tag facets and suggestions."""
    __tablename__ = 'tags'

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    usage_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Tag(id='{self.id}', name='{self.name}', usage_count={self.usage_count})>"
