"""Content catalog item and its category/tag links."""
from datetime import datetime, UTC

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text
)
from sqlalchemy.orm import relationship

from content_ranking_service.models.base import Base

PUBLISHED = 'published'

CONTENT_TYPES = ('video', 'photo', 'vr', 'live', 'audio')

content_categories = Table(
    'content_categories',
    Base.metadata,
    Column('content_id', String(36), ForeignKey('content.id'), primary_key=True),
    Column('category_id', String(36), ForeignKey('categories.id'), primary_key=True),
)

content_tags = Table(
    'content_tags',
    Base.metadata,
    Column('content_id', String(36), ForeignKey('content.id'), primary_key=True),
    Column('tag_id', String(36), ForeignKey('tags.id'), primary_key=True),
)


def format_duration(seconds: int | None) -> str:
    """Format a duration in seconds as M:SS, or H:MM:SS past an hour."""
    if not seconds:
        return '0:00'

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class ContentItem(Base):
    """A piece of published or draft content.

    view_count and like_count are maintained by other services; this
    package only reads them.
    """
    __tablename__ = 'content'

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default='video')
    status = Column(String(20), nullable=False, default='draft')
    is_public = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)

    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=True)  # seconds
    resolution = Column(String(50), nullable=True)

    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    creator_id = Column(String(36), ForeignKey('creators.id'), nullable=False)

    creator = relationship('Creator', lazy='joined')
    categories = relationship('Category', secondary=content_categories, lazy='selectin')
    tags = relationship('Tag', secondary=content_tags, lazy='selectin')

    @property
    def category_ids(self) -> set[str]:
        return {category.id for category in self.categories}

    @property
    def tag_ids(self) -> set[str]:
        return {tag.id for tag in self.tags}

    def to_dict(self) -> dict:
        """Public representation used in search and recommendation results."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'type': self.type,
            'duration': self.duration,
            'duration_label': format_duration(self.duration),
            'views': self.view_count,
            'likes': self.like_count,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'quality': [self.resolution] if self.resolution else [],
            'creator': {
                'id': self.creator.id,
                'handle': self.creator.handle,
                'display_name': self.creator.display_name,
            } if self.creator is not None else None,
            'tags': [tag.name for tag in self.tags],
            'category': self.categories[0].name if self.categories else 'Uncategorized',
        }

    def __repr__(self):
        return f"<ContentItem(id='{self.id}', title='{self.title}', views={self.view_count})>"
