"""Read-only queries over the content catalog."""

import logging
from datetime import datetime, UTC
from typing import List, Optional, Sequence

from sqlalchemy import and_, asc, desc, false, func, or_, true
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from content_ranking_service.models import (
    Category, ContentItem, Creator, Tag, content_categories, content_tags
)
from content_ranking_service.models.content import PUBLISHED
from content_ranking_service.ranking.facets import FacetLink
from content_ranking_service.ranking.predicate import (
    AllOf,
    CategoryIn,
    CreatorIn,
    DateRange,
    DurationRange,
    Eligible,
    IdIn,
    IdNotIn,
    PublishedSince,
    QualityIn,
    TagIn,
    TextMatch,
    TypeIn,
    eligible,
)
from content_ranking_service.ranking.query_builder import SortDirective

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    'view_count': ContentItem.view_count,
    'like_count': ContentItem.like_count,
    'published_at': ContentItem.published_at,
}


def _naive_utc(value: datetime) -> datetime:
    """DateTime columns hold naive UTC values."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def compile_clause(clause) -> ColumnElement:
    """
    Translate one predicate clause into a SQLAlchemy expression.

    Args:
        clause: Any clause from content_ranking_service.ranking.predicate

    Returns:
        Boolean SQL expression over ContentItem
    """
    if isinstance(clause, AllOf):
        return compile_predicate(clause)

    if isinstance(clause, Eligible):
        return and_(
            ContentItem.status == PUBLISHED,
            ContentItem.is_public.is_(True),
            ContentItem.deleted_at.is_(None),
        )

    if isinstance(clause, TextMatch):
        text = clause.text
        return or_(
            ContentItem.title.icontains(text, autoescape=True),
            ContentItem.description.icontains(text, autoescape=True),
            ContentItem.tags.any(Tag.name.icontains(text, autoescape=True)),
            ContentItem.creator.has(
                or_(
                    Creator.display_name.icontains(text, autoescape=True),
                    Creator.handle.icontains(text, autoescape=True),
                )
            ),
        )

    if isinstance(clause, TypeIn):
        return ContentItem.type.in_(clause.types)

    if isinstance(clause, CategoryIn):
        return ContentItem.categories.any(
            and_(Category.id.in_(clause.category_ids), Category.deleted_at.is_(None))
        )

    if isinstance(clause, TagIn):
        return ContentItem.tags.any(Tag.id.in_(clause.tag_ids))

    if isinstance(clause, CreatorIn):
        return ContentItem.creator_id.in_(clause.creator_ids)

    if isinstance(clause, DurationRange):
        bounds = []
        if clause.min_seconds is not None:
            bounds.append(ContentItem.duration >= clause.min_seconds)
        if clause.max_seconds is not None:
            bounds.append(ContentItem.duration <= clause.max_seconds)
        return and_(true(), *bounds)

    if isinstance(clause, DateRange):
        bounds = []
        if clause.start is not None:
            bounds.append(ContentItem.published_at >= _naive_utc(clause.start))
        if clause.end is not None:
            bounds.append(ContentItem.published_at <= _naive_utc(clause.end))
        return and_(true(), *bounds)

    if isinstance(clause, QualityIn):
        if not clause.resolutions:
            return true()
        return or_(*[
            ContentItem.resolution.contains(resolution, autoescape=True)
            for resolution in clause.resolutions
        ])

    if isinstance(clause, IdIn):
        if not clause.content_ids:
            return false()
        return ContentItem.id.in_(clause.content_ids)

    if isinstance(clause, IdNotIn):
        if not clause.content_ids:
            return true()
        return ContentItem.id.not_in(clause.content_ids)

    if isinstance(clause, PublishedSince):
        return ContentItem.published_at >= _naive_utc(clause.since)

    raise TypeError(f"Unsupported predicate clause: {type(clause).__name__}")


def compile_predicate(predicate: AllOf) -> ColumnElement:
    """AND together every clause of a predicate."""
    return and_(true(), *[compile_clause(clause) for clause in predicate.clauses])


class ContentRepository:
    """
    Read-only repository over content, categories and tags.
    """

    def __init__(self, db: Session):
        self.db = db

    def _order_by(self, directive: SortDirective):
        column = _SORT_COLUMNS[directive.field]
        primary = desc(column) if directive.descending else asc(column)
        return primary, asc(ContentItem.id)

    def query_content(
            self,
            predicate: AllOf,
            directive: SortDirective,
            skip: int = 0,
            take: int = 20
    ) -> List[ContentItem]:
        """
        Fetch one page of content matching a predicate.

        Args:
            predicate: Filter to apply
            directive: Sort order
            skip: Number of rows to skip
            take: Maximum rows to return

        Returns:
            List of ContentItem
        """
        return (
            self.db.query(ContentItem)
            .filter(compile_predicate(predicate))
            .order_by(*self._order_by(directive))
            .offset(skip)
            .limit(take)
            .all()
        )

    def count_content(self, predicate: AllOf) -> int:
        """Count content matching a predicate."""
        return (
            self.db.query(func.count(ContentItem.id))
            .filter(compile_predicate(predicate))
            .scalar()
        ) or 0

    # noinspection PyTypeChecker
    def matching_ids(self, predicate: AllOf) -> List[str]:
        """Ids of every item matching a predicate, unpaginated."""
        rows = (
            self.db.query(ContentItem.id)
            .filter(compile_predicate(predicate))
            .all()
        )
        return [row[0] for row in rows]

    def get_content_by_id(self, content_id: str) -> Optional[ContentItem]:
        """Get a content item by id, eligible or not."""
        return self.db.query(ContentItem).filter(ContentItem.id == content_id).first()

    def get_eligible_by_ids(self, content_ids: Sequence[str]) -> List[ContentItem]:
        """Eligible items among the given ids, in no particular order."""
        if not content_ids:
            return []
        return (
            self.db.query(ContentItem)
            .filter(compile_predicate(eligible(IdIn(tuple(content_ids)))))
            .all()
        )

    def most_viewed(self, limit: int, exclude_ids: Sequence[str] = ()) -> List[ContentItem]:
        """
        Most-viewed eligible content.

        Args:
            limit: Maximum number of items
            exclude_ids: Content ids to leave out

        Returns:
            List of ContentItem, highest view count first
        """
        return self.query_content(
            eligible(IdNotIn(tuple(exclude_ids))),
            SortDirective('view_count'),
            skip=0,
            take=limit,
        )

    def similarity_candidates(self, source: ContentItem) -> List[ContentItem]:
        """
        Eligible items sharing a category, a tag or the creator with source.

        Args:
            source: Item to find candidates for

        Returns:
            Candidates excluding source itself, highest view count first
        """
        shared = []
        if source.creator_id is not None:
            shared.append(ContentItem.creator_id == source.creator_id)
        if source.category_ids:
            shared.append(ContentItem.categories.any(Category.id.in_(sorted(source.category_ids))))
        if source.tag_ids:
            shared.append(ContentItem.tags.any(Tag.id.in_(sorted(source.tag_ids))))
        if not shared:
            return []

        return (
            self.db.query(ContentItem)
            .filter(
                compile_predicate(eligible(IdNotIn((source.id,)))),
                or_(*shared),
            )
            .order_by(desc(ContentItem.view_count), asc(ContentItem.id))
            .all()
        )

    def category_links(self, content_ids: Sequence[str]) -> List[FacetLink]:
        """Links from the given content to active, non-deleted categories."""
        if not content_ids:
            return []
        rows = (
            self.db.query(content_categories.c.content_id, Category.id, Category.name)
            .join(Category, Category.id == content_categories.c.category_id)
            .filter(
                content_categories.c.content_id.in_(content_ids),
                Category.deleted_at.is_(None),
                Category.is_active.is_(True),
            )
            .all()
        )
        return [FacetLink(content_id, category_id, name) for content_id, category_id, name in rows]

    def tag_links(self, content_ids: Sequence[str]) -> List[FacetLink]:
        """Links from the given content to tags, with each tag's usage count."""
        if not content_ids:
            return []
        rows = (
            self.db.query(content_tags.c.content_id, Tag.id, Tag.name, Tag.usage_count)
            .join(Tag, Tag.id == content_tags.c.tag_id)
            .filter(content_tags.c.content_id.in_(content_ids))
            .all()
        )
        return [
            FacetLink(content_id, tag_id, name, usage_count or 0)
            for content_id, tag_id, name, usage_count in rows
        ]

    # noinspection PyTypeChecker
    def title_suggestions(self, text: str, limit: int = 5) -> List[str]:
        """Titles of the most viewed eligible content matching text."""
        rows = (
            self.db.query(ContentItem.title)
            .filter(
                compile_predicate(eligible()),
                or_(
                    ContentItem.title.icontains(text, autoescape=True),
                    ContentItem.description.icontains(text, autoescape=True),
                ),
            )
            .order_by(desc(ContentItem.view_count), asc(ContentItem.id))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    # noinspection PyTypeChecker
    def tag_suggestions(self, text: str, limit: int = 5) -> List[str]:
        """Names of the most used tags matching text."""
        rows = (
            self.db.query(Tag.name)
            .filter(Tag.name.icontains(text, autoescape=True))
            .order_by(desc(Tag.usage_count), asc(Tag.name))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    # noinspection PyTypeChecker
    def category_suggestions(self, text: str, limit: int = 5) -> List[str]:
        """Names of active categories whose name or slug matches text."""
        rows = (
            self.db.query(Category.name)
            .filter(
                Category.is_active.is_(True),
                Category.deleted_at.is_(None),
                or_(
                    Category.name.icontains(text, autoescape=True),
                    Category.slug.icontains(text, autoescape=True),
                ),
            )
            .order_by(asc(Category.name))
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]
