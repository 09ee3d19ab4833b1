# ABOUTME: FastAPI route handlers for the hn-digest JSON API.
# ABOUTME: Serves ranked stories, date and title lookups, thread detail, stats and fetch trigger.

from datetime import UTC, date, datetime, time

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from hn_digest.errors import SourceUnavailableError
from hn_digest.models import SortMode
from hn_digest.services.container import Services
from hn_digest.tree import build_comment_tree

log = structlog.get_logger()
router = APIRouter()


def _services(request: Request) -> Services:
    return request.app.state.services


def _envelope(data, **extra) -> dict:
    body = {"success": True, "data": data}
    if isinstance(data, list):
        body["count"] = len(data)
    body.update(extra)
    return body


@router.get("/api/posts")
async def list_posts(
    request: Request,
    limit: int = Query(20, ge=1, le=200),
    sort_by: SortMode = Query(SortMode.BY_COMMENTS),
):
    """Latest stored stories, ordered by the chosen metric."""
    stories = await _services(request).store.get_stories_ranked(limit=limit, mode=sort_by)
    return _envelope([s.model_dump(mode="json") for s in stories], sort_by=sort_by.value)


@router.get("/api/posts/date/{day}")
async def posts_by_date(request: Request, day: date, limit: int = Query(20, ge=1, le=200)):
    """Stories refreshed on a given UTC day."""
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = datetime.combine(day, time.max, tzinfo=UTC)
    stories = await _services(request).store.get_stories_by_date_range(start, end, limit)
    return _envelope([s.model_dump(mode="json") for s in stories])


@router.get("/api/posts/search")
async def search_posts(request: Request, q: str = "", limit: int = Query(20, ge=1, le=200)):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Search keyword required")
    stories = await _services(request).store.search_stories_by_title(q.strip(), limit)
    return _envelope([s.model_dump(mode="json") for s in stories])


@router.get("/api/posts/{post_id}")
async def post_detail(request: Request, post_id: int):
    """One story with its flat comment list and the reconstructed thread."""
    store = _services(request).store
    story = await store.get_story_by_id(post_id)
    if not story:
        raise HTTPException(status_code=404, detail="Post not found")

    comments = await store.get_comments_by_story_id(post_id)
    thread = build_comment_tree(comments)
    return _envelope(
        {
            "post": story.model_dump(mode="json"),
            "comments": [c.model_dump(mode="json") for c in comments],
            "thread": [node.model_dump(mode="json") for node in thread],
        }
    )


@router.get("/api/stats")
async def stats(request: Request):
    store = _services(request).store
    current = await store.get_stats()
    last_update = await store.get_last_update()
    return _envelope(
        {
            **current.model_dump(),
            "last_update": last_update.isoformat() if last_update else None,
        }
    )


@router.post("/api/fetch")
async def trigger_fetch(request: Request):
    """Run a fetch cycle now."""
    pipeline = _services(request).pipeline
    try:
        result = await pipeline.run_cycle()
    except SourceUnavailableError as e:
        log.error("fetch_trigger_failed", error=str(e))
        raise HTTPException(status_code=502, detail="Hacker News API unavailable") from e

    if result is None:
        raise HTTPException(status_code=409, detail="A fetch cycle is already running")
    log.info("fetch_triggered", stories=result.stories, comments=result.comments_inserted)
    return _envelope(result.model_dump())


@router.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}
