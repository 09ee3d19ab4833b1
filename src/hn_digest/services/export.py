# ABOUTME: Static JSON snapshot of stored stories with their flat comment lists.
# ABOUTME: Lets a static front end render the digest without the API server.

import json
from datetime import UTC, datetime
from pathlib import Path

import structlog

from hn_digest.db.store import Store
from hn_digest.models import SortMode

log = structlog.get_logger()


async def build_snapshot(store: Store, limit: int = 60) -> dict:
    """Collect stored stories, newest first, each with its comments."""
    stories = await store.get_stories_ranked(limit=limit, mode=SortMode.BY_COMMENTS)
    posts = []
    for story in stories:
        comments = await store.get_comments_by_story_id(story.id)
        post = story.model_dump(mode="json")
        post["comments"] = [c.model_dump(mode="json") for c in comments]
        posts.append(post)
    return {"last_update": datetime.now(UTC).isoformat(), "posts": posts}


async def export_snapshot(store: Store, path: Path, limit: int = 60) -> bool:
    """Write the snapshot to `path`. Returns True if the file was written."""
    snapshot = await build_snapshot(store, limit)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        log.error("export_write_error", path=str(path), error=str(e))
        return False

    log.info(
        "snapshot_exported",
        path=str(path),
        posts=len(snapshot["posts"]),
        comments=sum(len(p["comments"]) for p in snapshot["posts"]),
    )
    return True
