# streamseen/db/crud/activity.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from streamseen.db.models import ACCEPTED, Activity, Friendship, User

log = logging.getLogger(__name__)


async def record(db: AsyncSession, user_id: str, type_: str, **payload: Any) -> Optional[Activity]:
    """
    Append a feed entry inside a savepoint of the caller's transaction.
    Never raises: a failed append is rolled back to the savepoint and logged,
    and the caller's mutation still commits.
    """
    try:
        async with db.begin_nested():
            row = Activity(user_id=user_id, type=type_, **payload)
            db.add(row)
        return row
    except Exception as e:
        log.warning("activity: failed to record %s for user=%s (continuing). err=%s", type_, user_id, e)
        return None


async def get_friends_activity(db: AsyncSession, user_id: str, limit: int = 20) -> List[Activity]:
    """Latest activities of accepted friends who share their activity, newest first."""
    friend_ids = select(Friendship.friend_id).where(
        Friendship.user_id == user_id,
        Friendship.status == ACCEPTED,
    )
    stmt = (
        select(Activity)
        .join(User, Activity.user_id == User.id)
        .options(contains_eager(Activity.user))
        .where(Activity.user_id.in_(friend_ids), User.share_activity.is_(True))
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())

