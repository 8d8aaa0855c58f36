"""Category and tag facet counts over a matched content set."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Set, Tuple

DEFAULT_TAG_LIMIT = 50


@dataclass(frozen=True)
class FacetLink:
    """One content item linked to one category or tag."""
    content_id: str
    facet_id: str
    name: str
    usage_count: int = 0


@dataclass(frozen=True)
class FacetCount:
    id: str
    name: str
    count: int
    usage_count: int = 0

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'count': self.count}


@dataclass(frozen=True)
class Facets:
    categories: Tuple[FacetCount, ...] = field(default_factory=tuple)
    tags: Tuple[FacetCount, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'categories': [facet.to_dict() for facet in self.categories],
            'tags': [facet.to_dict() for facet in self.tags],
        }


def count_facets(links: Iterable[FacetLink]) -> Tuple[FacetCount, ...]:
    """
    Count distinct content items per facet.

    Args:
        links: Content-to-facet links, restricted to the matched set

    Returns:
        One FacetCount per facet, in first-seen order
    """
    members: Dict[str, Set[str]] = {}
    first_link: Dict[str, FacetLink] = {}

    for link in links:
        if link.facet_id not in members:
            members[link.facet_id] = set()
            first_link[link.facet_id] = link
        members[link.facet_id].add(link.content_id)

    return tuple(
        FacetCount(
            id=facet_id,
            name=first_link[facet_id].name,
            count=len(content_ids),
            usage_count=first_link[facet_id].usage_count,
        )
        for facet_id, content_ids in members.items()
    )


def category_facets(links: Iterable[FacetLink]) -> Tuple[FacetCount, ...]:
    """Category counts ordered alphabetically by name."""
    counts = count_facets(links)
    return tuple(sorted(counts, key=lambda facet: (facet.name.lower(), facet.id)))


def tag_facets(links: Iterable[FacetLink], limit: int = DEFAULT_TAG_LIMIT) -> Tuple[FacetCount, ...]:
    """Tag counts ordered by global usage count, highest first, capped to limit."""
    counts = count_facets(links)
    ordered = sorted(counts, key=lambda facet: (-facet.usage_count, facet.name.lower(), facet.id))
    return tuple(ordered[:limit])


def compute_facets(
        category_links: Iterable[FacetLink],
        tag_links: Iterable[FacetLink],
        tag_limit: int = DEFAULT_TAG_LIMIT
) -> Facets:
    """Build both facet lists for one search."""
    return Facets(
        categories=category_facets(category_links),
        tags=tag_facets(tag_links, limit=tag_limit),
    )
