# ABOUTME: Pydantic schemas for remote items, stories, comments, and store stats.
# ABOUTME: Every enrichment field is declared up front and defaults to absent.

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SortMode(StrEnum):
    BY_COMMENTS = "comments"
    BY_POINTS = "points"


class HNItem(BaseModel):
    """Raw item as returned by the Hacker News API."""

    id: int
    type: str | None = None
    title: str | None = None
    url: str | None = None
    text: str | None = None
    score: int = 0
    descendants: int = 0
    time: int | None = None
    by: str | None = None
    kids: list[int] = Field(default_factory=list)
    deleted: bool = False
    dead: bool = False


class Story(BaseModel):
    """One aggregated discussion thread."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    remote_id: int
    title: str
    translated_title: str | None = None
    url: str | None = None
    body_text: str | None = None
    translated_body: str | None = None
    abstract: str | None = None
    score: int = 0
    comment_count: int = 0
    author: str = "unknown"
    created_at: datetime
    fetched_at: datetime | None = None
    # Diagnostic only, never persisted
    heat: float | None = Field(default=None, exclude=True)


class Comment(BaseModel):
    """One node of a discussion thread. parent_id is the parent's remote id."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    remote_comment_id: int
    story_id: int | None = None
    parent_id: int | None = None
    author: str = "unknown"
    body_text: str = ""
    translated_body: str | None = None
    created_at: datetime


class CommentNode(Comment):
    """A comment with its nested replies, built for display only."""

    children: list["CommentNode"] = Field(default_factory=list)


class StoreStats(BaseModel):
    story_count: int
    total_comments: int
    total_points: int


class CycleResult(BaseModel):
    """Outcome of one fetch cycle."""

    stories: int
    comments_inserted: int
    abstracts_generated: int
    stats: StoreStats
