# streamseen/db/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# ----------------------------
# Enumerations (stored as plain strings)
# ----------------------------
WATCHLIST = "watchlist"
WATCHED = "watched"
LIST_KINDS = (WATCHLIST, WATCHED)

MOVIE = "Movie"
TV_SHOW = "TV Show"
CONTENT_TYPES = (MOVIE, TV_SHOW)

PENDING = "pending"
ACCEPTED = "accepted"
DECLINED = "declined"
FRIENDSHIP_STATUSES = (PENDING, ACCEPTED, DECLINED)

ACTIVITY_WATCHED = "watched"
ACTIVITY_ADDED_TO_WATCHLIST = "added_to_watchlist"
ACTIVITY_RATED = "rated"
ACTIVITY_FRIEND_ADDED = "friend_added"
ACTIVITY_TYPES = (
    ACTIVITY_WATCHED,
    ACTIVITY_ADDED_TO_WATCHLIST,
    ACTIVITY_RATED,
    ACTIVITY_FRIEND_ADDED,
)

PUBLIC = "public"
FRIENDS = "friends"
PRIVATE = "private"
VISIBILITIES = (PUBLIC, FRIENDS, PRIVATE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_title(title: str) -> str:
    """Comparison form of a title: trimmed and case-folded."""
    return (title or "").strip().casefold()


def pair_key(a: str, b: str) -> str:
    """Direction-free key for a pair of user ids."""
    lo, hi = sorted((a, b))
    return f"{lo}|{hi}"


def _in(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Base(DeclarativeBase):
    pass


class User(Base):
    """
    Identity + profile + privacy flags.
    NOTE: id is the identity provider's subject claim, not generated here.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    public_profile: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_real_name: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    watchlist_privacy: Mapped[str] = mapped_column(String(16), default=FRIENDS, nullable=False)
    ratings_privacy: Mapped[str] = mapped_column(String(16), default=FRIENDS, nullable=False)
    share_activity: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    friend_recommendations: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    list_items: Mapped[list["ListItem"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(_in("watchlist_privacy", VISIBILITIES), name="ck_users_watchlist_privacy"),
        CheckConstraint(_in("ratings_privacy", VISIBILITIES), name="ck_users_ratings_privacy"),
    )

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.id


class Friendship(Base):
    """
    Directed edge user_id -> friend_id.
    An accepted friendship is stored as two accepted edges, one per direction.
    The request edge carries pair_key; the reciprocal edge leaves it NULL, so a
    pair holds at most one request edge whichever side sent it.
    """
    __tablename__ = "friendships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    friend_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status: Mapped[str] = mapped_column(String(16), default=PENDING, nullable=False)
    pair_key: Mapped[Optional[str]] = mapped_column(String(140), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    friend: Mapped["User"] = relationship(foreign_keys=[friend_id])

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_user_friend"),
        UniqueConstraint("pair_key", name="uq_friendships_pair_key"),
        CheckConstraint(_in("status", FRIENDSHIP_STATUSES), name="ck_friendships_status"),
    )


class ListItem(Base):
    """
    One media record in either the watchlist or the watched list.
    The unique key ignores list_kind, so a title+year lives in at most one list.
    """
    __tablename__ = "list_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    list_kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    title_key: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    genre: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    streaming_service: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content_type: Mapped[str] = mapped_column(String(16), nullable=False, default=MOVIE)
    franchise_movies: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON, nullable=True)

    # watched-only fields
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    watched_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped["User"] = relationship(back_populates="list_items")

    __table_args__ = (
        UniqueConstraint("user_id", "title_key", "year", name="uq_list_items_user_title_year"),
        CheckConstraint(_in("list_kind", LIST_KINDS), name="ck_list_items_kind"),
        CheckConstraint(_in("content_type", CONTENT_TYPES), name="ck_list_items_content_type"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_list_items_rating"),
    )


class Activity(Base):
    """Append-only feed entry."""
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    friend_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    user: Mapped["User"] = relationship()

    __table_args__ = (
        CheckConstraint(_in("type", ACTIVITY_TYPES), name="ck_activities_type"),
    )


__all__ = [
    "Base",
    "User",
    "Friendship",
    "ListItem",
    "Activity",
    "normalize_title",
    "pair_key",
    "utcnow",
]
