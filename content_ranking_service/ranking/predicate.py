"""Serializable filter clauses over content items.

A predicate is a tree of frozen dataclasses. It carries no database
types; ContentRepository compiles it into a SQLAlchemy expression.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Eligible:
    """Published, public and not soft-deleted."""

    def to_dict(self) -> dict:
        return {'kind': 'eligible'}


@dataclass(frozen=True)
class TextMatch:
    """Case-insensitive substring match on title, description, tag names,
    creator display name or creator handle (any of them)."""
    text: str

    def to_dict(self) -> dict:
        return {'kind': 'text_match', 'text': self.text}


@dataclass(frozen=True)
class TypeIn:
    types: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'type_in', 'types': list(self.types)}


@dataclass(frozen=True)
class CategoryIn:
    category_ids: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'category_in', 'category_ids': list(self.category_ids)}


@dataclass(frozen=True)
class TagIn:
    tag_ids: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'tag_in', 'tag_ids': list(self.tag_ids)}


@dataclass(frozen=True)
class CreatorIn:
    creator_ids: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'creator_in', 'creator_ids': list(self.creator_ids)}


@dataclass(frozen=True)
class DurationRange:
    """Inclusive duration bounds in seconds. A missing bound is open."""
    min_seconds: Optional[int] = None
    max_seconds: Optional[int] = None

    def to_dict(self) -> dict:
        return {'kind': 'duration_range', 'min': self.min_seconds, 'max': self.max_seconds}


@dataclass(frozen=True)
class DateRange:
    """Inclusive bounds on published_at. A missing bound is open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {'kind': 'date_range', 'from': _iso(self.start), 'to': _iso(self.end)}


@dataclass(frozen=True)
class QualityIn:
    """Resolution contains any of the given substrings."""
    resolutions: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'quality_in', 'resolutions': list(self.resolutions)}


@dataclass(frozen=True)
class IdIn:
    content_ids: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'id_in', 'content_ids': list(self.content_ids)}


@dataclass(frozen=True)
class IdNotIn:
    content_ids: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {'kind': 'id_not_in', 'content_ids': list(self.content_ids)}


@dataclass(frozen=True)
class PublishedSince:
    since: datetime

    def to_dict(self) -> dict:
        return {'kind': 'published_since', 'since': _iso(self.since)}


Clause = Union[
    Eligible, TextMatch, TypeIn, CategoryIn, TagIn, CreatorIn,
    DurationRange, DateRange, QualityIn, IdIn, IdNotIn, PublishedSince,
]


@dataclass(frozen=True)
class AllOf:
    """Conjunction of clauses. An empty AllOf matches everything."""
    clauses: Tuple[Clause, ...] = field(default_factory=tuple)

    def with_clause(self, clause: Clause) -> 'AllOf':
        return AllOf(self.clauses + (clause,))

    def to_dict(self) -> dict:
        return {'kind': 'all_of', 'clauses': [c.to_dict() for c in self.clauses]}


Predicate = AllOf


def eligible(*clauses: Clause) -> AllOf:
    """Predicate matching eligible content that also satisfies every clause."""
    return AllOf((Eligible(),) + tuple(clauses))
