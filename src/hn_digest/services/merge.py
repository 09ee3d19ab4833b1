# ABOUTME: Merges ranked candidate lists and reconciles them against the store.
# ABOUTME: First occurrence of a remote id wins; persistence is upsert by remote id.

from datetime import UTC, datetime

import structlog

from hn_digest.db.store import Store
from hn_digest.models import Comment, Story

log = structlog.get_logger()


def merge_candidates(*lists: list[Story]) -> list[Story]:
    """Concatenate lists, keeping the first story seen for each remote_id."""
    merged: dict[int, Story] = {}
    for stories in lists:
        for story in stories:
            if story.remote_id not in merged:
                merged[story.remote_id] = story
    return list(merged.values())


async def reconcile_stories(
    store: Store, stories: list[Story], fetched_at: datetime | None = None
) -> list[Story]:
    """Upsert every story and return the stored rows with local ids."""
    fetched_at = fetched_at or datetime.now(UTC)
    stored = []
    for story in stories:
        stored.append(await store.upsert_story(story, fetched_at=fetched_at))
    log.info("stories_reconciled", count=len(stored))
    return stored


async def attach_comments(store: Store, story_id: int, comments: list[Comment]) -> int:
    """Bind comments to a stored story and insert the ones not yet known."""
    owned = [comment.model_copy(update={"story_id": story_id}) for comment in comments]
    return await store.insert_comments(owned)
