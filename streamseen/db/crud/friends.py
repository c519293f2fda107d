# streamseen/db/crud/friends.py
"""
Friend requests as directed edges.

    send_request(A, B)  -> (A, B, pending), pair_key set; unique per unordered pair
    accept(B, A)        -> (A, B, accepted) + reciprocal (B, A, accepted)
    decline(B, A)       -> (A, B, declined)        terminal
    remove(A, B)        -> both directions deleted, whatever their status
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from streamseen.core.errors import AlreadyRequestedOrFriends, NotFound
from streamseen.db.crud import activity
from streamseen.db.models import (
    ACCEPTED,
    ACTIVITY_FRIEND_ADDED,
    DECLINED,
    PENDING,
    Friendship,
    User,
    pair_key,
    utcnow,
)

log = logging.getLogger(__name__)


def _between(a: str, b: str):
    return or_(
        and_(Friendship.user_id == a, Friendship.friend_id == b),
        and_(Friendship.user_id == b, Friendship.friend_id == a),
    )


async def get_friendship(db: AsyncSession, user_id: str, friend_id: str) -> Optional[Friendship]:
    """Any edge between the two users, in either direction."""
    res = await db.execute(select(Friendship).where(_between(user_id, friend_id)).limit(1))
    return res.scalars().first()


async def send_request(db: AsyncSession, user_id: str, friend_id: str) -> Friendship:
    if user_id == friend_id:
        raise NotFound("You cannot send a friend request to yourself")
    friend = await db.get(User, friend_id)
    if friend is None:
        raise NotFound("User not found")

    if await get_friendship(db, user_id, friend_id) is not None:
        raise AlreadyRequestedOrFriends()

    edge = Friendship(
        user_id=user_id, friend_id=friend_id, status=PENDING, pair_key=pair_key(user_id, friend_id)
    )
    db.add(edge)
    try:
        await db.flush()
    except IntegrityError:
        # A request between the same two users landed first, in either direction.
        await db.rollback()
        raise AlreadyRequestedOrFriends()

    await activity.record(db, user_id, ACTIVITY_FRIEND_ADDED, friend_name=friend.display_name)
    await db.commit()
    log.info("friends: %s -> %s request sent", user_id, friend_id)
    return edge


async def _resolve_pending(db: AsyncSession, user_id: str, requester_id: str, status: str) -> int:
    res = await db.execute(
        update(Friendship)
        .where(
            Friendship.user_id == requester_id,
            Friendship.friend_id == user_id,
            Friendship.status == PENDING,
        )
        .values(status=status, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0


async def accept(db: AsyncSession, user_id: str, requester_id: str) -> None:
    """user_id accepts the pending request sent by requester_id."""
    if not await _resolve_pending(db, user_id, requester_id, ACCEPTED):
        await db.rollback()
        raise NotFound("No pending friend request from this user")

    # Reciprocal edge; reuse it if user_id already had one towards the requester.
    existing = (await db.execute(
        select(Friendship).where(
            Friendship.user_id == user_id, Friendship.friend_id == requester_id
        )
    )).scalar_one_or_none()
    if existing is not None:
        existing.status = ACCEPTED
        existing.updated_at = utcnow()
    else:
        db.add(Friendship(user_id=user_id, friend_id=requester_id, status=ACCEPTED))
    await db.commit()
    log.info("friends: %s accepted %s", user_id, requester_id)


async def decline(db: AsyncSession, user_id: str, requester_id: str) -> None:
    """user_id declines the pending request sent by requester_id. Terminal."""
    if not await _resolve_pending(db, user_id, requester_id, DECLINED):
        await db.rollback()
        raise NotFound("No pending friend request from this user")
    await db.commit()
    log.info("friends: %s declined %s", user_id, requester_id)


async def remove(db: AsyncSession, user_id: str, friend_id: str) -> None:
    await db.execute(delete(Friendship).where(_between(user_id, friend_id)))
    await db.commit()
    log.info("friends: %s removed %s", user_id, friend_id)


# ──────────────────────────────────────────────────────────────────────
# Reads
# ──────────────────────────────────────────────────────────────────────

async def get_friends(db: AsyncSession, user_id: str) -> List[User]:
    res = await db.execute(
        select(User)
        .join(Friendship, Friendship.friend_id == User.id)
        .where(Friendship.user_id == user_id, Friendship.status == ACCEPTED)
        .order_by(User.first_name.asc(), User.id.asc())
    )
    return list(res.scalars().all())


async def get_friend_ids(db: AsyncSession, user_id: str) -> List[str]:
    res = await db.execute(
        select(Friendship.friend_id).where(
            Friendship.user_id == user_id, Friendship.status == ACCEPTED
        )
    )
    return [str(x) for x in res.scalars().all()]


async def are_friends(db: AsyncSession, user_id: str, other_id: str) -> bool:
    res = await db.execute(
        select(Friendship.id).where(
            Friendship.user_id == user_id,
            Friendship.friend_id == other_id,
            Friendship.status == ACCEPTED,
        )
    )
    return res.first() is not None


async def get_friend_requests(db: AsyncSession, user_id: str) -> List[Friendship]:
    """Incoming pending requests; `.user` is the requester."""
    res = await db.execute(
        select(Friendship)
        .join(User, Friendship.user_id == User.id)
        .options(contains_eager(Friendship.user))
        .where(Friendship.friend_id == user_id, Friendship.status == PENDING)
        .order_by(Friendship.created_at.desc(), Friendship.id.desc())
    )
    return list(res.scalars().all())


async def get_sent_requests(db: AsyncSession, user_id: str) -> List[Friendship]:
    """Outgoing pending requests; `.friend` is the target."""
    res = await db.execute(
        select(Friendship)
        .join(User, Friendship.friend_id == User.id)
        .options(contains_eager(Friendship.friend))
        .where(Friendship.user_id == user_id, Friendship.status == PENDING)
        .order_by(Friendship.created_at.desc(), Friendship.id.desc())
    )
    return list(res.scalars().all())
