from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from typing import Optional
from timetrack.database import get_db
from timetrack.core.auth import get_current_user
from timetrack.schemas.daily_summary import DailySummaryResponse, DailySummaryGenerate, NarrativeResponse
from timetrack.services import daily_summary as summary_service
from timetrack.services.narrative import NarrativeGenerator, get_narrative_generator

router = APIRouter(prefix="/daily-summaries", tags=["daily-summaries"])


@router.get("", response_model=list[DailySummaryResponse])
async def get_daily_summaries(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await summary_service.list_summaries(db, current_user.id, start_date=start_date, end_date=end_date)


@router.get("/date/{day}", response_model=DailySummaryResponse)
async def get_daily_summary_by_date(
    day: date,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    # Created on first request for the day.
    return await summary_service.get_summary_for_date(db, current_user.id, day)


@router.post("/generate", response_model=DailySummaryResponse)
async def generate_daily_summary(
    summary_in: DailySummaryGenerate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await summary_service.get_summary_for_date(db, current_user.id, summary_in.date)


@router.get("/{summary_id}", response_model=DailySummaryResponse)
async def get_daily_summary(
    summary_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await summary_service.get_summary(db, summary_id, current_user.id)


@router.post("/{summary_id}:generate-summary", response_model=NarrativeResponse)
async def generate_narrative_summary(
    summary_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    generator: NarrativeGenerator = Depends(get_narrative_generator)
):
    summary, message = await summary_service.generate_narrative(db, summary_id, current_user.id, generator)
    return NarrativeResponse(
        summary=DailySummaryResponse.model_validate(summary),
        narrative_message=message,
    )
