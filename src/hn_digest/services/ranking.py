# ABOUTME: Hotness ranking of candidate stories under the comments and points sort modes.
# ABOUTME: Stories younger than 24h get a 20% boost on the metric being sorted.

import time
from datetime import UTC, datetime

import structlog

from hn_digest.models import HNItem, SortMode, Story
from hn_digest.services.hn_client import HNClient, strip_html

log = structlog.get_logger()

GRAVITY = 1.8
FRESH_HOURS = 24
FRESH_BOOST = 0.2
HN_ITEM_URL = "https://news.ycombinator.com/item?id={id}"


def heat_score(score: int, descendants: int, age_hours: float) -> float:
    """Time-decayed popularity. Diagnostic only, not used as a sort key."""
    decay = (age_hours + 2) ** GRAVITY
    return (score - 1) / decay + 0.5 * descendants / decay


def sort_key(item: HNItem, mode: SortMode, age_hours: float) -> float:
    base = item.score if mode == SortMode.BY_POINTS else item.descendants
    boost = base * FRESH_BOOST if age_hours < FRESH_HOURS else 0
    return base + boost


def story_from_item(item: HNItem) -> Story:
    """Convert a raw item into a Story record (not yet persisted)."""
    return Story(
        remote_id=item.id,
        title=item.title or "No title",
        url=item.url or HN_ITEM_URL.format(id=item.id),
        body_text=strip_html(item.text) or None,
        score=item.score or 0,
        comment_count=item.descendants or 0,
        author=item.by or "unknown",
        created_at=datetime.fromtimestamp(item.time or 0, UTC),
    )


def rank_stories(
    items: list[HNItem], mode: SortMode, limit: int, now: float | None = None
) -> list[Story]:
    """Order candidate items by mode and return the top `limit` stories.

    Every item must carry a timestamp; callers filter those out beforehand.
    Ties keep their input order.
    """
    now = time.time() if now is None else now

    scored: list[tuple[float, Story]] = []
    for item in items:
        if item.type != "story" or not item.descendants:
            continue
        age_hours = (now - item.time) / 3600
        story = story_from_item(item)
        story.heat = heat_score(item.score, item.descendants, age_hours)
        scored.append((sort_key(item, mode, age_hours), story))

    # sorted() is stable, including with reverse=True
    ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)
    log.info("stories_ranked", mode=mode.value, candidates=len(items), eligible=len(scored))
    return [story for _, story in ranked[:limit]]


async def fetch_candidates(client: HNClient, candidate_limit: int = 100) -> list[HNItem]:
    """Fetch the first `candidate_limit` top stories, dropping undated items."""
    ids = await client.get_top_story_ids()
    items = await client.get_items(ids[:candidate_limit])

    dated = []
    for item in items:
        if item.time is None:
            log.warning("candidate_without_timestamp", item_id=item.id)
            continue
        dated.append(item)

    log.info("candidates_fetched", ids=len(ids), items=len(dated))
    return dated
