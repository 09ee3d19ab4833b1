# ABOUTME: Shared test fixtures for hn-digest.
# ABOUTME: Provides a temporary SQLite store, a fake HN client, and story/comment factories.

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest

from hn_digest.config import Settings
from hn_digest.db.session import Database
from hn_digest.db.store import Store
from hn_digest.models import Comment, HNItem, Story


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temp database, no API key, no throttling."""
    return Settings(
        _env_file=None,
        db_path=tmp_path / "test.db",
        anthropic_api_key=None,
        enrichment_delay=0,
        fetch_interval_hours=0,
        export_path=tmp_path / "posts.json",
    )


@pytest.fixture
async def database(settings) -> AsyncGenerator[Database]:
    """File-backed SQLite database with all tables created."""
    db = Database(settings.database_url)
    await db.init()
    yield db
    await db.close()


@pytest.fixture
def store(database) -> Store:
    return Store(database.session_factory)


class FakeHNClient:
    """In-memory stand-in for HNClient serving items from a dict."""

    def __init__(self, items: dict[int, dict] | None = None, top_ids: list[int] | None = None):
        self.items = items or {}
        self.top_ids = top_ids or []
        self.requested: list[int] = []

    async def get_top_story_ids(self) -> list[int]:
        return list(self.top_ids)

    async def get_item(self, item_id: int) -> HNItem | None:
        self.requested.append(item_id)
        data = self.items.get(item_id)
        return HNItem.model_validate(data) if data is not None else None

    async def get_items(self, ids) -> list[HNItem]:
        items = [await self.get_item(i) for i in ids]
        return [i for i in items if i is not None]

    async def aclose(self) -> None:
        pass


@pytest.fixture
def fake_client_factory():
    return FakeHNClient


def make_story(remote_id: int = 1, **overrides) -> Story:
    fields = {
        "remote_id": remote_id,
        "title": f"Story {remote_id}",
        "url": f"https://example.com/{remote_id}",
        "score": 10,
        "comment_count": 5,
        "author": "pg",
        "created_at": datetime(2026, 10, 1, 12, 0, tzinfo=UTC),
    }
    fields.update(overrides)
    return Story(**fields)


def make_comment(remote_comment_id: int, parent_id: int | None = None, **overrides) -> Comment:
    fields = {
        "remote_comment_id": remote_comment_id,
        "parent_id": parent_id,
        "author": "dang",
        "body_text": f"Comment {remote_comment_id}.",
        "created_at": datetime(2026, 10, 1, 13, 0, tzinfo=UTC),
    }
    fields.update(overrides)
    return Comment(**fields)


class OfflineTranslator:
    """Translator with no backend configured."""

    available = False

    async def translate(self, text):
        return None

    async def summarize(self, title, body, comments):
        return None
