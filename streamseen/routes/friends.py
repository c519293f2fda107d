# streamseen/routes/friends.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.core.settings import settings
from streamseen.database import get_async_db
from streamseen.db.crud import activity as activity_crud
from streamseen.db.crud import friends as friends_crud
from streamseen.db.crud import users as users_crud
from streamseen.db.models import User
from streamseen.schemas import ActivityOut, FriendIdIn, FriendRequestOut, FriendshipOut, UserOut
from streamseen.security import require_user

router = APIRouter(prefix="/friends", tags=["friends"])


def _request_out(edge, other: User) -> FriendRequestOut:
    return FriendRequestOut(
        id=edge.id,
        user_id=edge.user_id,
        friend_id=edge.friend_id,
        status=edge.status,
        created_at=edge.created_at,
        updated_at=edge.updated_at,
        user=UserOut.model_validate(other),
    )


@router.get("", response_model=List[UserOut])
async def list_friends(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await friends_crud.get_friends(db, current.id)


@router.get("/requests", response_model=List[FriendRequestOut])
async def incoming_requests(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    rows = await friends_crud.get_friend_requests(db, current.id)
    return [_request_out(r, r.user) for r in rows]


@router.get("/sent-requests", response_model=List[FriendRequestOut])
async def sent_requests(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    rows = await friends_crud.get_sent_requests(db, current.id)
    return [_request_out(r, r.friend) for r in rows]


@router.post("/request", response_model=FriendshipOut)
async def send_request(
    payload: FriendIdIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await friends_crud.send_request(db, current.id, payload.friend_id)


@router.post("/accept")
async def accept_request(
    payload: FriendIdIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    await friends_crud.accept(db, current.id, payload.friend_id)
    return {"ok": True}


@router.post("/decline")
async def decline_request(
    payload: FriendIdIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    await friends_crud.decline(db, current.id, payload.friend_id)
    return {"ok": True}


@router.get("/suggested", response_model=List[UserOut])
async def suggested_friends(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await users_crud.get_suggested_friends(db, current.id, limit=settings.suggestion_limit)


@router.get("/activity", response_model=List[ActivityOut])
async def friends_activity(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await activity_crud.get_friends_activity(db, current.id, limit=settings.feed_limit)


@router.delete("/{friend_id}")
async def remove_friend(
    friend_id: str = Path(min_length=1),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    await friends_crud.remove(db, current.id, friend_id)
    return {"ok": True}
