# streamseen/routes/recommendations.py
from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.database import get_async_db
from streamseen.db.crud import lists as lists_crud
from streamseen.db.models import User
from streamseen.schemas import (
    MediaRecord,
    RecommendationIn,
    SearchResult,
    StreamingSearchIn,
    TitleInfo,
    TitleInfoIn,
)
from streamseen.security import require_user
from streamseen.services import llm

router = APIRouter(tags=["recommendations"])


@router.post("/recommendations", response_model=MediaRecord)
async def recommend(
    payload: RecommendationIn = Body(...),
    current: User = Depends(require_user),
    db: AsyncSession = Depends(get_async_db),
):
    """One recommendation that is in neither of the caller's lists."""
    excluded = await lists_crud.excluded_titles(db, current.id)
    return await llm.get_recommendation(
        genre=payload.genre,
        mood=payload.mood,
        platforms=payload.platforms,
        excluded_titles=excluded,
        content_type=payload.content_type,
        series_status=payload.series_status,
    )


@router.post("/streaming-search", response_model=SearchResult)
async def streaming_search(
    payload: StreamingSearchIn = Body(...),
    _: User = Depends(require_user),
):
    return await llm.find_availability(payload.query)


@router.post("/title-info", response_model=TitleInfo)
async def title_info(
    payload: TitleInfoIn = Body(...),
    _: User = Depends(require_user),
):
    return await llm.get_structured_info(payload.title)
