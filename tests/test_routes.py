# ABOUTME: Tests for the JSON API routes.
# ABOUTME: Drives the FastAPI app through httpx ASGITransport against a temp store.

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest
from conftest import FakeHNClient, OfflineTranslator, make_comment, make_story

from hn_digest.errors import SourceUnavailableError
from hn_digest.services.container import build_services
from hn_digest.web.app import create_app


@pytest.fixture
async def services(settings):
    services = build_services(settings, client=FakeHNClient(), translator=OfflineTranslator())
    await services.start()
    yield services
    await services.close()


@pytest.fixture
async def api(services):
    app = create_app(services, schedule=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _seed(store):
    fetched = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)
    a = await store.upsert_story(
        make_story(1, title="Rust in the kernel", score=10, comment_count=90), fetched_at=fetched
    )
    b = await store.upsert_story(
        make_story(2, title="Postgres tips", score=300, comment_count=5), fetched_at=fetched
    )
    await store.insert_comments(
        [
            make_comment(10, story_id=a.id),
            make_comment(11, 10, story_id=a.id),
            make_comment(12, 999, story_id=a.id),
        ]
    )
    return a, b


async def test_list_posts_sorting(api, services):
    await _seed(services.store)

    by_comments = (await api.get("/api/posts")).json()
    by_points = (await api.get("/api/posts", params={"sort_by": "points"})).json()

    assert by_comments["success"] is True
    assert by_comments["count"] == 2
    assert [p["remote_id"] for p in by_comments["data"]] == [1, 2]
    assert [p["remote_id"] for p in by_points["data"]] == [2, 1]
    assert "heat" not in by_points["data"][0]


async def test_invalid_sort_mode_rejected(api):
    response = await api.get("/api/posts", params={"sort_by": "karma"})
    assert response.status_code == 422


async def test_post_detail_includes_thread(api, services):
    story, _ = await _seed(services.store)

    body = (await api.get(f"/api/posts/{story.id}")).json()["data"]

    assert body["post"]["title"] == "Rust in the kernel"
    assert len(body["comments"]) == 3
    roots = {node["remote_comment_id"]: node for node in body["thread"]}
    assert set(roots) == {10, 12}
    assert [c["remote_comment_id"] for c in roots[10]["children"]] == [11]


async def test_post_detail_not_found(api):
    response = await api.get("/api/posts/12345")
    assert response.status_code == 404


async def test_search(api, services):
    await _seed(services.store)

    found = (await api.get("/api/posts/search", params={"q": "postgres"})).json()
    assert [p["remote_id"] for p in found["data"]] == [2]

    missing = await api.get("/api/posts/search", params={"q": " "})
    assert missing.status_code == 400


async def test_posts_by_date(api, services):
    await _seed(services.store)

    same_day = (await api.get("/api/posts/date/2026-10-18")).json()
    other_day = (await api.get("/api/posts/date/2026-10-17")).json()

    assert same_day["count"] == 2
    assert other_day["count"] == 0


async def test_stats(api, services):
    await _seed(services.store)

    data = (await api.get("/api/stats")).json()["data"]

    assert data["story_count"] == 2
    assert data["total_comments"] == 95
    assert data["total_points"] == 310
    assert data["last_update"].startswith("2026-10-18T09:00:00")


async def test_trigger_fetch_conflict_and_outage(api, services):
    services.pipeline.run_cycle = AsyncMock(return_value=None)
    assert (await api.post("/api/fetch")).status_code == 409

    services.pipeline.run_cycle = AsyncMock(side_effect=SourceUnavailableError("down"))
    assert (await api.post("/api/fetch")).status_code == 502


async def test_trigger_fetch_runs_cycle(api, services):
    services.client.top_ids = []

    response = await api.post("/api/fetch")

    assert response.status_code == 200
    assert response.json()["data"]["stories"] == 0


async def test_health(api):
    assert (await api.get("/health")).json()["status"] == "ok"
