# streamseen/db/crud/membership.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.db.models import WATCHED, WATCHLIST, ListItem, normalize_title


@dataclass(frozen=True)
class Membership:
    in_watchlist: bool = False
    in_watched: bool = False

    @property
    def absent(self) -> bool:
        return not (self.in_watchlist or self.in_watched)


async def find_item(
    db: AsyncSession, user_id: str, title: str, year: int, list_kind: Optional[str] = None
) -> Optional[ListItem]:
    """Row for (user, normalized title, year), optionally restricted to one list."""
    stmt = select(ListItem).where(
        ListItem.user_id == user_id,
        ListItem.title_key == normalize_title(title),
        ListItem.year == int(year),
    )
    if list_kind is not None:
        stmt = stmt.where(ListItem.list_kind == list_kind)
    return (await db.execute(stmt)).scalar_one_or_none()


async def exists(db: AsyncSession, user_id: str, title: str, year: int) -> Membership:
    """Which of the user's lists currently hold this title+year. No side effects."""
    kinds = (await db.execute(
        select(ListItem.list_kind).where(
            ListItem.user_id == user_id,
            ListItem.title_key == normalize_title(title),
            ListItem.year == int(year),
        )
    )).scalars().all()
    return Membership(in_watchlist=WATCHLIST in kinds, in_watched=WATCHED in kinds)
