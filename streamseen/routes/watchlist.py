# streamseen/routes/watchlist.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.database import get_async_db
from streamseen.db.crud import lists as lists_crud
from streamseen.db.crud.membership import exists
from streamseen.db.models import User
from streamseen.schemas import ListItemOut, MediaRecord, MembershipOut
from streamseen.security import require_user

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


@router.get("", response_model=List[ListItemOut])
async def get_watchlist(
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await lists_crud.get_watchlist(db, current.id)


@router.get("/status", response_model=MembershipOut)
async def membership_status(
    title: str = Query(min_length=1),
    year: int = Query(),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    m = await exists(db, current.id, title, year)
    return MembershipOut(in_watchlist=m.in_watchlist, in_watched=m.in_watched)


@router.post("", response_model=ListItemOut, status_code=201)
async def add_to_watchlist(
    payload: MediaRecord = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await lists_crud.add_to_watchlist(db, current.id, payload)


@router.delete("/{title:path}/{year}")
async def remove_from_watchlist(
    title: str = Path(min_length=1),
    year: int = Path(),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict:
    removed = await lists_crud.remove_from_watchlist(db, current.id, title, year)
    return {"ok": True, "removed": removed}
