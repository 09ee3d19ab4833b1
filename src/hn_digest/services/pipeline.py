# ABOUTME: One fetch cycle: rank, merge, enrich, persist stories, then comments and abstracts.
# ABOUTME: Also runs the age-based retention sweep. Only one cycle may run at a time.

import asyncio
import time
from datetime import UTC, datetime, timedelta

import structlog

from hn_digest.config import Settings
from hn_digest.db.store import Store
from hn_digest.models import CycleResult, SortMode, Story
from hn_digest.services.comments import fetch_comment_tree
from hn_digest.services.enrichment import Enricher
from hn_digest.services.hn_client import HNClient
from hn_digest.services.merge import attach_comments, merge_candidates, reconcile_stories
from hn_digest.services.ranking import fetch_candidates, rank_stories

log = structlog.get_logger()


class Pipeline:
    """Fetch-cycle orchestration over injected client, store and enricher."""

    def __init__(
        self, client: HNClient, store: Store, enricher: Enricher, settings: Settings
    ) -> None:
        self.client = client
        self.store = store
        self.enricher = enricher
        self.settings = settings
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self) -> CycleResult | None:
        """Run a full fetch cycle, or return None if one is already in progress.

        Raises SourceUnavailableError when the story list cannot be fetched;
        the store is left as it was.
        """
        if self._lock.locked():
            log.warning("fetch_cycle_already_running")
            return None
        async with self._lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> CycleResult:
        settings = self.settings
        started = time.time()
        log.info("fetch_cycle_started")

        candidates = await fetch_candidates(self.client, settings.candidate_limit)
        by_comments = rank_stories(
            candidates, SortMode.BY_COMMENTS, settings.stories_per_mode, now=started
        )
        by_points = rank_stories(
            candidates, SortMode.BY_POINTS, settings.stories_per_mode, now=started
        )
        # Comment ranking first: its copy wins when both lists hold a story
        merged = merge_candidates(by_comments, by_points)
        log.info("stories_merged", unique=len(merged))

        enriched = []
        for i, story in enumerate(merged, start=1):
            log.info("enriching_story", index=i, total=len(merged), title=story.title[:50])
            enriched.append(await self._enrich_story(story))

        stored = await reconcile_stories(
            self.store, enriched, fetched_at=datetime.fromtimestamp(started, UTC)
        )

        comments_inserted = 0
        abstracts_generated = 0
        for story in stored:
            inserted, generated = await self._process_comments(story)
            comments_inserted += inserted
            abstracts_generated += int(generated)

        stats = await self.store.get_stats()
        log.info(
            "fetch_cycle_complete",
            stories=len(stored),
            comments_inserted=comments_inserted,
            abstracts=abstracts_generated,
            story_count=stats.story_count,
            total_comments=stats.total_comments,
            total_points=stats.total_points,
            elapsed=round(time.time() - started, 1),
        )
        return CycleResult(
            stories=len(stored),
            comments_inserted=comments_inserted,
            abstracts_generated=abstracts_generated,
            stats=stats,
        )

    async def _enrich_story(self, story: Story) -> Story:
        try:
            return await self.enricher.enrich_story(story)
        except Exception as e:
            log.error("story_enrichment_failed", remote_id=story.remote_id, error=str(e))
            return story

    async def _process_comments(self, story: Story) -> tuple[int, bool]:
        """Fetch, translate and store a story's comments; fill a missing abstract.

        Returns (comments inserted, abstract generated).
        """
        settings = self.settings
        comments = []
        item = await self.client.get_item(story.remote_id)
        if item is not None and item.kids:
            comments = await fetch_comment_tree(
                self.client,
                item,
                max_depth=settings.comment_max_depth,
                root_limit=settings.comment_root_limit,
                child_limit=settings.comment_child_limit,
            )

        inserted = 0
        if comments:
            comments = await self.enricher.enrich_comments(comments)
            inserted = await attach_comments(self.store, story.id, comments)
            log.info("comments_saved", remote_id=story.remote_id, fetched=len(comments), new=inserted)

        if story.abstract:
            return inserted, False

        abstract = await self.enricher.summarize(story, comments)
        await self.store.update_story_abstract(story.id, abstract)
        log.info("abstract_saved", remote_id=story.remote_id)
        return inserted, True

    async def purge(self, retention_days: int | None = None) -> tuple[int, int]:
        """Delete stories (and their comments) not refreshed within the retention window."""
        days = self.settings.retention_days if retention_days is None else retention_days
        cutoff = datetime.now(UTC) - timedelta(days=days)
        async with self._lock:
            return await self.store.delete_older_than(cutoff)
