# streamseen/routes/users.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.core.settings import settings
from streamseen.database import get_async_db
from streamseen.db.crud import users as users_crud
from streamseen.db.models import User
from streamseen.schemas import ListItemOut, PrivacyUpdate, UserOut, UserStats, VisibleLists
from streamseen.security import require_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/stats", response_model=UserStats)
async def user_stats(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await users_crud.get_stats(db, current.id)


@router.put("/privacy", response_model=UserOut)
async def update_privacy(
    payload: PrivacyUpdate = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await users_crud.update_privacy_settings(
        db, current.id, payload.model_dump(exclude_unset=True)
    )


@router.get("/search", response_model=List[UserOut])
async def search_users(
    q: str = Query(min_length=1, max_length=100),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await users_crud.search_users(db, q, current.id, limit=settings.search_limit)


@router.get("/{user_id}/lists", response_model=VisibleLists)
async def visible_lists(
    user_id: str = Path(min_length=1),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Another user's lists, filtered by their watchlist/ratings privacy."""
    data = await users_crud.get_visible_lists(db, current.id, user_id)
    return VisibleLists(
        user=UserOut.model_validate(data["user"]),
        watchlist=None if data["watchlist"] is None else [ListItemOut.model_validate(i) for i in data["watchlist"]],
        watched=None if data["watched"] is None else [ListItemOut.model_validate(i) for i in data["watched"]],
    )
