# ABOUTME: Keyed storage for stories and comments on top of the async session factory.
# ABOUTME: Upserts by remote id, idempotent comment inserts, ranked reads and retention sweep.

from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hn_digest.db.models import Comment as CommentRow
from hn_digest.db.models import Story as StoryRow
from hn_digest.models import Comment, SortMode, Story, StoreStats

log = structlog.get_logger()


class Store:
    """Story and comment persistence. Each call runs in its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def upsert_story(self, story: Story, fetched_at: datetime | None = None) -> Story:
        """Insert a story or update its mutable fields, keyed by remote_id.

        A single INSERT .. ON CONFLICT statement, so the unique constraint on
        remote_id can never yield two rows. The abstract is only overwritten
        when the incoming story carries one.
        """
        fetched_at = fetched_at or datetime.now(UTC)
        stmt = sqlite_insert(StoryRow.__table__).values(
            remote_id=story.remote_id,
            title=story.title,
            translated_title=story.translated_title,
            url=story.url,
            body_text=story.body_text,
            translated_body=story.translated_body,
            abstract=story.abstract,
            score=story.score,
            comment_count=story.comment_count,
            author=story.author,
            created_at=story.created_at,
            fetched_at=fetched_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["remote_id"],
            set_={
                "title": stmt.excluded.title,
                "translated_title": stmt.excluded.translated_title,
                "body_text": stmt.excluded.body_text,
                "translated_body": stmt.excluded.translated_body,
                "abstract": func.coalesce(stmt.excluded.abstract, StoryRow.abstract),
                "score": stmt.excluded.score,
                "comment_count": stmt.excluded.comment_count,
                "fetched_at": stmt.excluded.fetched_at,
            },
        )

        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()
            result = await session.execute(
                select(StoryRow).where(StoryRow.remote_id == story.remote_id)
            )
            row = result.scalar_one()
            stored = Story.model_validate(row)

        log.debug("story_upserted", remote_id=story.remote_id, id=stored.id, score=stored.score)
        return stored

    async def get_stories_ranked(
        self, limit: int = 20, mode: SortMode = SortMode.BY_COMMENTS
    ) -> list[Story]:
        """Latest stories first, then by the chosen metric."""
        metric = StoryRow.score if mode == SortMode.BY_POINTS else StoryRow.comment_count
        query = (
            select(StoryRow).order_by(StoryRow.fetched_at.desc(), metric.desc()).limit(limit)
        )
        return await self._fetch_stories(query)

    async def get_stories_by_date_range(
        self, start: datetime, end: datetime, limit: int = 20
    ) -> list[Story]:
        """Stories refreshed within [start, end], most discussed first."""
        query = (
            select(StoryRow)
            .where(StoryRow.fetched_at >= start, StoryRow.fetched_at <= end)
            .order_by(StoryRow.comment_count.desc())
            .limit(limit)
        )
        return await self._fetch_stories(query)

    async def search_stories_by_title(self, substring: str, limit: int = 20) -> list[Story]:
        query = (
            select(StoryRow)
            .where(StoryRow.title.contains(substring, autoescape=True))
            .order_by(StoryRow.fetched_at.desc(), StoryRow.comment_count.desc())
            .limit(limit)
        )
        return await self._fetch_stories(query)

    async def get_story_by_id(self, story_id: int) -> Story | None:
        stories = await self._fetch_stories(select(StoryRow).where(StoryRow.id == story_id))
        return stories[0] if stories else None

    async def get_story_by_remote_id(self, remote_id: int) -> Story | None:
        stories = await self._fetch_stories(
            select(StoryRow).where(StoryRow.remote_id == remote_id)
        )
        return stories[0] if stories else None

    async def update_story_abstract(self, story_id: int, abstract: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(StoryRow).where(StoryRow.id == story_id).values(abstract=abstract)
            )
            await session.commit()

    async def insert_comment(self, comment: Comment) -> bool:
        """Insert a comment; a duplicate remote_comment_id is a silent no-op.

        Returns True if a row was written.
        """
        return await self.insert_comments([comment]) == 1

    async def insert_comments(self, comments: list[Comment]) -> int:
        """Insert comments idempotently. Returns the number of new rows."""
        inserted = 0
        async with self._session_factory() as session:
            for comment in comments:
                if comment.story_id is None:
                    raise ValueError(f"comment {comment.remote_comment_id} has no story_id")
                stmt = (
                    sqlite_insert(CommentRow.__table__)
                    .values(
                        story_id=comment.story_id,
                        remote_comment_id=comment.remote_comment_id,
                        parent_id=comment.parent_id,
                        author=comment.author,
                        body_text=comment.body_text,
                        translated_body=comment.translated_body,
                        created_at=comment.created_at,
                    )
                    .on_conflict_do_nothing(index_elements=["remote_comment_id"])
                )
                result = await session.execute(stmt)
                inserted += result.rowcount
            await session.commit()

        log.debug("comments_inserted", inserted=inserted, total=len(comments))
        return inserted

    async def get_comments_by_story_id(self, story_id: int) -> list[Comment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CommentRow)
                .where(CommentRow.story_id == story_id)
                .order_by(CommentRow.created_at.desc())
            )
            return [Comment.model_validate(row) for row in result.scalars().all()]

    async def delete_older_than(self, before: datetime) -> tuple[int, int]:
        """Purge stories fetched before the cutoff, their comments first.

        Both deletes share one transaction. Returns (stories, comments) removed.
        """
        async with self._session_factory() as session, session.begin():
            stale_ids = select(StoryRow.id).where(StoryRow.fetched_at < before)
            comments_result = await session.execute(
                delete(CommentRow.__table__).where(CommentRow.story_id.in_(stale_ids))
            )
            stories_result = await session.execute(
                delete(StoryRow.__table__).where(StoryRow.fetched_at < before)
            )

        removed = (stories_result.rowcount, comments_result.rowcount)
        log.info(
            "old_records_deleted",
            before=before.isoformat(),
            stories=removed[0],
            comments=removed[1],
        )
        return removed

    async def get_stats(self) -> StoreStats:
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    func.count(StoryRow.id),
                    func.coalesce(func.sum(StoryRow.comment_count), 0),
                    func.coalesce(func.sum(StoryRow.score), 0),
                )
            )
            story_count, total_comments, total_points = result.one()
        return StoreStats(
            story_count=story_count,
            total_comments=total_comments,
            total_points=total_points,
        )

    async def get_last_update(self) -> datetime | None:
        async with self._session_factory() as session:
            result = await session.execute(select(func.max(StoryRow.fetched_at)))
            return result.scalar_one_or_none()

    async def _fetch_stories(self, query) -> list[Story]:
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [Story.model_validate(row) for row in result.scalars().all()]
