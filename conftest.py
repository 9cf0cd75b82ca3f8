"""Project-level pytest configuration and shared fixtures."""

import pytest

from aivideo_scraper.sources import SourceConfig
from aivideo_scraper.storage.database import Database
from aivideo_scraper.storage.video_sink import SQLAlchemyVideoSink
from tests.factories import make_post


@pytest.fixture
def post_factory():
    return make_post


@pytest.fixture
def exempt_source():
    return SourceConfig("aivideo", min_relevance_score=10, exempt_from_term_filter=True)


@pytest.fixture
def filtered_source():
    return SourceConfig("nextfuckinglevel", min_relevance_score=10, exclude_terms=frozenset({"meme"}))


@pytest.fixture
def database():
    """In-memory SQLite database with the schema created."""
    db = Database("sqlite://")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def video_sink(database):
    return SQLAlchemyVideoSink(database)
