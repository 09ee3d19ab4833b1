# ABOUTME: SQLAlchemy ORM models for stories and their comments.
# ABOUTME: Defines stories and comments tables with unique remote ids and indexes.

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC, returned as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    pass


class Story(Base):
    __tablename__ = "stories"
    __table_args__ = (
        Index("ix_stories_fetched_at", "fetched_at"),
        Index("ix_stories_comment_count", "comment_count"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    remote_id: Mapped[int] = mapped_column(Integer, unique=True)
    title: Mapped[str] = mapped_column(String(500))
    translated_title: Mapped[str | None] = mapped_column(String(1000))
    url: Mapped[str | None] = mapped_column(String(2048))
    body_text: Mapped[str | None] = mapped_column(Text)
    translated_body: Mapped[str | None] = mapped_column(Text)
    abstract: Mapped[str | None] = mapped_column(Text)
    score: Mapped[int] = mapped_column(Integer, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, default=0)
    author: Mapped[str] = mapped_column(String(255), default="unknown")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)
    fetched_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC)
    )

    comments: Mapped[list["Comment"]] = relationship(back_populates="story")


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_story_id", "story_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    story_id: Mapped[int] = mapped_column(ForeignKey("stories.id"))
    remote_comment_id: Mapped[int] = mapped_column(Integer, unique=True)
    # Remote id of the parent comment; NULL for top-level comments
    parent_id: Mapped[int | None] = mapped_column(Integer)
    author: Mapped[str] = mapped_column(String(255), default="unknown")
    body_text: Mapped[str] = mapped_column(Text, default="")
    translated_body: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)

    story: Mapped[Story] = relationship(back_populates="comments")
