# ABOUTME: Bounded concurrent fetch of a story's comment tree.
# ABOUTME: Depth capped at 2, first 20 top-level kids, first 5 kids below; dead branches skipped.

import asyncio
from datetime import UTC, datetime

import structlog

from hn_digest.models import Comment, HNItem
from hn_digest.services.hn_client import HNClient, strip_html

log = structlog.get_logger()

MAX_DEPTH = 2
ROOT_LIMIT = 20
CHILD_LIMIT = 5


def comment_from_item(item: HNItem, parent_id: int | None) -> Comment:
    return Comment(
        remote_comment_id=item.id,
        parent_id=parent_id,
        author=item.by or "unknown",
        body_text=strip_html(item.text),
        created_at=datetime.fromtimestamp(item.time or 0, UTC),
    )


async def fetch_comment_tree(
    client: HNClient,
    item: HNItem,
    max_depth: int = MAX_DEPTH,
    root_limit: int = ROOT_LIMIT,
    child_limit: int = CHILD_LIMIT,
) -> list[Comment]:
    """Fetch the comments under `item` as a flat list.

    Siblings are fetched concurrently and each branch returns its own list;
    results are concatenated after every branch has finished. Order is not
    meaningful.
    """
    if not item.kids:
        return []

    branches = await asyncio.gather(
        *(
            _fetch_branch(client, kid, 0, None, max_depth, child_limit)
            for kid in item.kids[:root_limit]
        )
    )
    comments = [comment for branch in branches for comment in branch]
    log.info("comment_tree_fetched", story_id=item.id, comments=len(comments))
    return comments


async def _fetch_branch(
    client: HNClient,
    comment_id: int,
    depth: int,
    parent_id: int | None,
    max_depth: int,
    child_limit: int,
) -> list[Comment]:
    if depth > max_depth:
        return []

    item = await client.get_item(comment_id)
    if item is None or item.deleted or item.dead:
        return []

    found = [comment_from_item(item, parent_id)]
    if item.kids and depth < max_depth:
        subtrees = await asyncio.gather(
            *(
                _fetch_branch(client, kid, depth + 1, item.id, max_depth, child_limit)
                for kid in item.kids[:child_limit]
            )
        )
        for subtree in subtrees:
            found.extend(subtree)
    return found
