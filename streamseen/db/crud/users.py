# streamseen/db/crud/users.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.core.errors import NotFound
from streamseen.db.crud import friends as friends_crud
from streamseen.db.crud import lists as lists_crud
from streamseen.db.models import (
    FRIENDS,
    PUBLIC,
    WATCHED,
    WATCHLIST,
    Friendship,
    ListItem,
    User,
    utcnow,
)

log = logging.getLogger(__name__)

PROFILE_CLAIMS = ("email", "first_name", "last_name", "profile_image_url")

PRIVACY_FIELDS = (
    "bio",
    "public_profile",
    "show_real_name",
    "watchlist_privacy",
    "ratings_privacy",
    "share_activity",
    "email_notifications",
    "friend_recommendations",
)


async def _email_owner(db: AsyncSession, email: str) -> Optional[str]:
    res = await db.execute(select(User.id).where(User.email == email))
    return res.scalar_one_or_none()


def _apply(user: User, profile: Dict[str, Any]) -> bool:
    changed = False
    for k, v in profile.items():
        if getattr(user, k) != v:
            setattr(user, k, v)
            changed = True
    return changed


async def _profile(db: AsyncSession, user_id: str, claims: Dict[str, Any]) -> Dict[str, Any]:
    profile = {k: claims.get(k) for k in PROFILE_CLAIMS if claims.get(k) is not None}
    email = profile.get("email")
    if email is not None:
        owner = await _email_owner(db, email)
        if owner is not None and owner != user_id:
            # users.email is unique; keep the login working without it.
            log.warning("users: email claim of %s already belongs to %s, not stored", user_id, owner)
            del profile["email"]
    return profile


async def upsert_user(db: AsyncSession, user_id: str, claims: Dict[str, Any]) -> User:
    """
    Create the user on first login; refresh profile claims afterwards.
    An email claim that another user already holds is left out.
    """
    profile = await _profile(db, user_id, claims)
    user = await db.get(User, user_id)
    if user is None:
        user = User(id=user_id, **profile)
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent first login for the same subject, or the email was taken meanwhile.
            await db.rollback()
            existing = await db.get(User, user_id)
            if existing is not None:
                return existing
            profile.pop("email", None)
            user = User(id=user_id, **profile)
            db.add(user)
            await db.commit()
        log.info("users: created %s", user_id)
        return user

    if _apply(user, profile):
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            log.warning("users: profile refresh for %s conflicted, retrying without email", user_id)
            profile.pop("email", None)
            user = await db.get(User, user_id)
            if _apply(user, profile):
                await db.commit()
    return user


async def update_privacy_settings(db: AsyncSession, user_id: str, fields: Dict[str, Any]) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    for k, v in fields.items():
        if k in PRIVACY_FIELDS and v is not None:
            setattr(user, k, v)
    user.updated_at = utcnow()
    await db.commit()
    return user


async def get_stats(db: AsyncSession, user_id: str) -> Dict[str, int]:
    kinds = (await db.execute(
        select(ListItem.list_kind, func.count(ListItem.id))
        .where(ListItem.user_id == user_id)
        .group_by(ListItem.list_kind)
    )).all()
    counts = {k: int(n) for k, n in kinds}

    now = utcnow()
    dates = (await db.execute(
        select(ListItem.watched_date).where(
            ListItem.user_id == user_id, ListItem.list_kind == WATCHED
        )
    )).scalars().all()
    this_month = sum(1 for d in dates if d is not None and d.year == now.year and d.month == now.month)

    return {
        "watchlist_count": counts.get(WATCHLIST, 0),
        "watched_count": counts.get(WATCHED, 0),
        "friends_count": len(await friends_crud.get_friend_ids(db, user_id)),
        "this_month_count": this_month,
    }


async def can_view(db: AsyncSession, viewer_id: str, owner: User, visibility: str) -> bool:
    if viewer_id == owner.id or visibility == PUBLIC:
        return True
    if visibility == FRIENDS:
        return await friends_crud.are_friends(db, owner.id, viewer_id)
    return False


async def get_visible_lists(db: AsyncSession, viewer_id: str, owner_id: str) -> Dict[str, Any]:
    """
    Owner's lists as seen by viewer; a list the viewer may not see is None.
    Raises NotFound for an unknown owner or a non-public profile of a stranger.
    """
    owner = await db.get(User, owner_id)
    if owner is None:
        raise NotFound("User not found")
    if viewer_id != owner.id and not owner.public_profile:
        if not await friends_crud.are_friends(db, owner.id, viewer_id):
            raise NotFound("User not found")

    out: Dict[str, Any] = {"user": owner, "watchlist": None, "watched": None}
    if await can_view(db, viewer_id, owner, owner.watchlist_privacy):
        out["watchlist"] = await lists_crud.get_watchlist(db, owner.id)
    if await can_view(db, viewer_id, owner, owner.ratings_privacy):
        out["watched"] = await lists_crud.get_watched(db, owner.id)
    return out


def _like_pattern(query: str) -> str:
    q = query.strip().lower()
    q = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{q}%"


async def search_users(db: AsyncSession, query: str, current_user_id: str, limit: int = 20) -> List[User]:
    pattern = _like_pattern(query)
    res = await db.execute(
        select(User)
        .where(
            User.id != current_user_id,
            User.public_profile.is_(True),
            or_(
                func.lower(User.first_name).like(pattern, escape="\\"),
                func.lower(User.last_name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ),
        )
        .order_by(User.first_name.asc(), User.id.asc())
        .limit(limit)
    )
    return list(res.scalars().all())


async def get_suggested_friends(db: AsyncSession, user_id: str, limit: int = 10) -> List[User]:
    """
    Public users open to recommendations with no edge to the caller in either
    direction, whatever its status (send_request would refuse them).
    """
    outgoing = select(Friendship.friend_id).where(Friendship.user_id == user_id)
    incoming = select(Friendship.user_id).where(Friendship.friend_id == user_id)
    res = await db.execute(
        select(User)
        .where(
            User.id != user_id,
            User.id.not_in(outgoing),
            User.id.not_in(incoming),
            User.public_profile.is_(True),
            User.friend_recommendations.is_(True),
        )
        .order_by(User.created_at.desc(), User.id.asc())
        .limit(limit)
    )
    return list(res.scalars().all())
