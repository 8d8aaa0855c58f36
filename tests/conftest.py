"""Shared test fixtures and configuration for pytest."""
import pytest
from datetime import datetime, timedelta
from typing import Dict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from content_ranking_service.models import (
    Base, Category, ContentItem, Creator, Tag, ViewRecord
)

# Reference time for every dated fixture (naive UTC, as stored)
FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0)


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite database engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(test_session_factory):
    """Create a database session for testing."""
    session = test_session_factory()
    yield session
    session.close()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


# ===== Sample Data Fixtures =====

@pytest.fixture
def sample_catalog(test_db_session) -> Dict[str, ContentItem]:
    """
    Small catalog with eligible and ineligible content.

    Eligible: c-x, c-y, c-z, c-w, c-lost.
    Ineligible: c-draft (draft), c-private (not public), c-deleted (soft-deleted).
    """
    kai = Creator(id='cr-kai', handle='kai', display_name='Kai Horror')
    mira = Creator(id='cr-mira', handle='mira', display_name='Mira Makes')

    horror = Category(id='cat-horror', name='Horror', slug='horror')
    comedy = Category(id='cat-comedy', name='Comedy', slug='comedy')
    archived = Category(id='cat-archived', name='Archived', slug='archived', is_active=False)
    removed = Category(id='cat-removed', name='Removed', slug='removed', deleted_at=FIXED_NOW)

    gore = Tag(id='tag-gore', name='gore', slug='gore', usage_count=40)
    night = Tag(id='tag-night', name='night', slug='night', usage_count=25)
    funny = Tag(id='tag-funny', name='funny', slug='funny', usage_count=10)

    def content(content_id, title, **kwargs):
        defaults = {
            'id': content_id,
            'title': title,
            'type': 'video',
            'status': 'published',
            'is_public': True,
            'view_count': 0,
            'like_count': 0,
            'created_at': FIXED_NOW - timedelta(days=30),
        }
        defaults.update(kwargs)
        return ContentItem(**defaults)

    items = [
        content(
            'c-x', 'Night of Gore',
            description='A long night in the woods',
            creator=kai, categories=[horror], tags=[gore, night],
            duration=600, view_count=240, like_count=24,
            published_at=FIXED_NOW - timedelta(hours=24), resolution='1920x1080',
        ),
        content(
            'c-y', 'Midnight Stalker',
            creator=kai, categories=[horror], tags=[],
            duration=610, view_count=500, like_count=10,
            published_at=FIXED_NOW - timedelta(hours=48), resolution='1280x720',
        ),
        content(
            'c-z', 'Gore Galore',
            creator=mira, categories=[horror, archived], tags=[gore],
            duration=300, view_count=100, like_count=50,
            published_at=FIXED_NOW - timedelta(hours=2), resolution='3840x2160',
        ),
        content(
            'c-w', 'Stand-up Special',
            description='An hour of comedy',
            type='audio', creator=mira, categories=[comedy], tags=[funny],
            duration=3725, view_count=1000, like_count=100,
            published_at=FIXED_NOW - timedelta(hours=200),
        ),
        content(
            'c-lost', 'Lost Category Clip',
            creator=mira, categories=[removed], tags=[],
            duration=90, view_count=50, like_count=5,
            published_at=FIXED_NOW - timedelta(hours=10),
        ),
        content(
            'c-draft', 'Unreleased Gore Cut',
            status='draft', creator=kai, categories=[horror], tags=[gore],
            duration=600, view_count=9999,
        ),
        content(
            'c-private', 'Private Night Screening',
            is_public=False, creator=kai, categories=[horror], tags=[night],
            duration=600, view_count=8000,
            published_at=FIXED_NOW - timedelta(hours=5),
        ),
        content(
            'c-deleted', 'Deleted Gore Clip',
            creator=kai, categories=[horror], tags=[gore],
            duration=600, view_count=7000, deleted_at=FIXED_NOW,
            published_at=FIXED_NOW - timedelta(hours=5),
        ),
    ]

    test_db_session.add_all(items)
    test_db_session.commit()

    return {item.id: item for item in items}


@pytest.fixture
def sample_views(test_db_session, sample_catalog):
    """
    Watch histories for collaborative filtering.

    u1: c-y (latest), c-x
    u2: c-y, c-z, c-w       -> Jaccard with u1 = 1/4
    u3: c-x, c-y, c-z       -> Jaccard with u1 = 2/3
    u4: c-w                 -> no overlap with u1
    u6: c-lost              -> nobody else watched it
    plus one anonymous view of c-x.
    """
    histories = {
        'u1': ['c-x', 'c-y'],
        'u2': ['c-y', 'c-z', 'c-w'],
        'u3': ['c-x', 'c-y', 'c-z'],
        'u4': ['c-w'],
        'u6': ['c-lost'],
    }

    views = []
    for user_id, content_ids in histories.items():
        for offset, content_id in enumerate(content_ids):
            # Later entries are more recent
            watched_at = FIXED_NOW - timedelta(hours=len(content_ids) - offset)
            views.append(ViewRecord(user_id=user_id, content_id=content_id, watched_at=watched_at))

    views.append(ViewRecord(user_id=None, content_id='c-x', watched_at=FIXED_NOW))

    test_db_session.add_all(views)
    test_db_session.commit()

    return histories
