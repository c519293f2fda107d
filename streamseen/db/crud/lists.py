# streamseen/db/crud/lists.py
"""
Watchlist / watched-list transitions.

Every (user, normalized title, year) key is in exactly one of three states:
absent, in the watchlist, or in the watched list. Each public function here is
one short transaction: check the current state, mutate, record the activity,
commit. The unique key on list_items backs the check against racing requests.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.core.errors import DuplicateItem, NotFound
from streamseen.db.crud import activity
from streamseen.db.crud.membership import Membership, exists, find_item
from streamseen.db.models import (
    ACTIVITY_ADDED_TO_WATCHLIST,
    ACTIVITY_RATED,
    ACTIVITY_WATCHED,
    MOVIE,
    WATCHED,
    WATCHLIST,
    ListItem,
    normalize_title,
    utcnow,
)

log = logging.getLogger(__name__)


def _payload_get(payload: Any, key: str, default=None):
    # Accept both Pydantic models (attribute) and dict (key)
    if hasattr(payload, key):
        return getattr(payload, key)
    if isinstance(payload, dict):
        return payload.get(key, default)
    return default


def _franchise(value: Any) -> Optional[List[Dict[str, Any]]]:
    if not value:
        return None
    out: List[Dict[str, Any]] = []
    for m in value:
        out.append({"title": _payload_get(m, "title"), "year": int(_payload_get(m, "year"))})
    return out


def _media_fields(record: Any) -> Dict[str, Any]:
    title = (_payload_get(record, "title") or "").strip()
    return {
        "title": title,
        "title_key": normalize_title(title),
        "year": int(_payload_get(record, "year")),
        "summary": _payload_get(record, "summary") or "",
        "genre": _payload_get(record, "genre") or "",
        "streaming_service": _payload_get(record, "streaming_service") or "",
        "reason": _payload_get(record, "reason") or "",
        "content_type": _payload_get(record, "content_type") or MOVIE,
        "franchise_movies": _franchise(_payload_get(record, "franchise_movies")),
    }


def _duplicate(current: Membership) -> DuplicateItem:
    where = "watched list" if current.in_watched else "watchlist"
    return DuplicateItem(f"Item already exists in your {where}")


async def _insert(db: AsyncSession, item: ListItem) -> None:
    db.add(item)
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent request inserted the same key first.
        await db.rollback()
        raise DuplicateItem()


# ──────────────────────────────────────────────────────────────────────
# Reads
# ──────────────────────────────────────────────────────────────────────

async def get_watchlist(db: AsyncSession, user_id: str) -> List[ListItem]:
    res = await db.execute(
        select(ListItem)
        .where(ListItem.user_id == user_id, ListItem.list_kind == WATCHLIST)
        .order_by(ListItem.created_at.desc(), ListItem.id.desc())
    )
    return list(res.scalars().all())


async def get_watched(db: AsyncSession, user_id: str) -> List[ListItem]:
    res = await db.execute(
        select(ListItem)
        .where(ListItem.user_id == user_id, ListItem.list_kind == WATCHED)
        .order_by(ListItem.watched_date.desc(), ListItem.id.desc())
    )
    return list(res.scalars().all())


async def excluded_titles(db: AsyncSession, user_id: str) -> List[str]:
    """Display titles in either list, de-duplicated by normalized form."""
    rows = (await db.execute(
        select(ListItem.title).where(ListItem.user_id == user_id).order_by(ListItem.id)
    )).scalars().all()
    seen = set()
    out: List[str] = []
    for t in rows:
        key = normalize_title(t)
        if key not in seen:
            seen.add(key)
            out.append(t)
    return out


# ──────────────────────────────────────────────────────────────────────
# Transitions
# ──────────────────────────────────────────────────────────────────────

async def add_to_watchlist(db: AsyncSession, user_id: str, record: Any) -> ListItem:
    fields = _media_fields(record)
    current = await exists(db, user_id, fields["title"], fields["year"])
    if not current.absent:
        raise _duplicate(current)

    item = ListItem(user_id=user_id, list_kind=WATCHLIST, **fields)
    await _insert(db, item)
    await activity.record(
        db, user_id, ACTIVITY_ADDED_TO_WATCHLIST, title=item.title, year=item.year
    )
    await db.commit()
    log.info("watchlist: user=%s added %r (%s)", user_id, item.title, item.year)
    return item


async def add_to_watched(
    db: AsyncSession,
    user_id: str,
    record: Any,
    rating: Optional[int] = None,
    comment: Optional[str] = "",
    watched_date: Optional[datetime] = None,
) -> ListItem:
    fields = _media_fields(record)
    current = await exists(db, user_id, fields["title"], fields["year"])
    if not current.absent:
        raise _duplicate(current)

    item = ListItem(
        user_id=user_id,
        list_kind=WATCHED,
        rating=rating,
        comment=comment or "",
        watched_date=watched_date or utcnow(),
        **fields,
    )
    await _insert(db, item)
    await activity.record(
        db, user_id, ACTIVITY_WATCHED,
        title=item.title, year=item.year, rating=rating, comment=item.comment,
    )
    await db.commit()
    log.info("watched: user=%s added %r (%s)", user_id, item.title, item.year)
    return item


async def move_to_watched(
    db: AsyncSession,
    user_id: str,
    title: str,
    year: int,
    rating: Optional[int] = None,
    comment: Optional[str] = "",
) -> ListItem:
    """
    Watchlist -> watched. The record keeps its media fields and gains
    rating/comment/watched_date. Raises NotFound when the key is in neither
    list, DuplicateItem when it is already in the watched list (the existing
    rating/comment are left as they are).
    """
    item = await find_item(db, user_id, title, year)
    if item is None:
        raise NotFound("Watchlist item not found")
    if item.list_kind == WATCHED:
        raise DuplicateItem("Item already exists in your watched list")

    # Compare-and-set on list_kind so two racing moves cannot both succeed.
    res = await db.execute(
        update(ListItem)
        .where(ListItem.id == item.id, ListItem.list_kind == WATCHLIST)
        .values(list_kind=WATCHED, rating=rating, comment=comment or "", watched_date=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if res.rowcount == 0:
        await db.rollback()
        raise DuplicateItem("Item already exists in your watched list")

    await activity.record(
        db, user_id, ACTIVITY_WATCHED,
        title=item.title, year=item.year, rating=rating, comment=comment or "",
    )
    await db.commit()
    await db.refresh(item)
    log.info("watched: user=%s moved %r (%s) from watchlist", user_id, item.title, item.year)
    return item


async def remove_from_watchlist(db: AsyncSession, user_id: str, title: str, year: int) -> bool:
    """Idempotent: returns False when there was nothing to remove."""
    return await _remove(db, user_id, title, year, WATCHLIST)


async def remove_from_watched(db: AsyncSession, user_id: str, title: str, year: int) -> bool:
    """Idempotent: returns False when there was nothing to remove."""
    return await _remove(db, user_id, title, year, WATCHED)


async def _remove(db: AsyncSession, user_id: str, title: str, year: int, list_kind: str) -> bool:
    res = await db.execute(
        delete(ListItem).where(
            ListItem.user_id == user_id,
            ListItem.title_key == normalize_title(title),
            ListItem.year == int(year),
            ListItem.list_kind == list_kind,
        )
    )
    await db.commit()
    removed = bool(res.rowcount)
    log.debug("%s: user=%s remove %r (%s) removed=%s", list_kind, user_id, title, year, removed)
    return removed


async def update_watched_item(
    db: AsyncSession,
    user_id: str,
    title: str,
    year: int,
    rating: Optional[int],
    comment: Optional[str] = "",
) -> Optional[ListItem]:
    """Replace rating/comment. No-op (returns None) when the key is not in the watched list."""
    item = await find_item(db, user_id, title, year, list_kind=WATCHED)
    if item is None:
        return None

    item.rating = rating
    item.comment = comment or ""
    await db.flush()
    if rating is not None:
        await activity.record(
            db, user_id, ACTIVITY_RATED,
            title=item.title, year=item.year, rating=rating, comment=item.comment,
        )
    await db.commit()
    return item
