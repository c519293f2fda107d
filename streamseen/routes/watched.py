# streamseen/routes/watched.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.database import get_async_db
from streamseen.db.crud import lists as lists_crud
from streamseen.db.models import User
from streamseen.schemas import ListItemOut, MoveToWatchedIn, WatchedIn, WatchedUpdate
from streamseen.security import require_user

router = APIRouter(prefix="/watched", tags=["watched"])


@router.get("", response_model=List[ListItemOut])
async def get_watched(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await lists_crud.get_watched(db, current.id)


@router.post("", response_model=ListItemOut, status_code=201)
async def add_to_watched(
    payload: WatchedIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await lists_crud.add_to_watched(
        db, current.id, payload,
        rating=payload.rating, comment=payload.comment, watched_date=payload.watched_date,
    )


@router.post("/move", response_model=ListItemOut)
async def move_to_watched(
    payload: MoveToWatchedIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await lists_crud.move_to_watched(
        db, current.id, payload.title, payload.year, payload.rating, payload.comment
    )


@router.put("/{title:path}/{year}")
async def update_watched_item(
    title: str = Path(min_length=1),
    year: int = Path(),
    payload: WatchedUpdate = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    item = await lists_crud.update_watched_item(
        db, current.id, title, year, payload.rating, payload.comment
    )
    return {"ok": True, "updated": item is not None}


@router.delete("/{title:path}/{year}")
async def remove_from_watched(
    title: str = Path(min_length=1),
    year: int = Path(),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    removed = await lists_crud.remove_from_watched(db, current.id, title, year)
    return {"ok": True, "removed": removed}
