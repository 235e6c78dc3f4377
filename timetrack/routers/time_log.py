from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from typing import Optional
from timetrack.database import get_db
from timetrack.core.auth import get_current_user
from timetrack.schemas.time_log import TimeLogResponse, TimeLogWithTask
from timetrack.services import time_tracking

router = APIRouter(prefix="/time-logs", tags=["time-logs"])


@router.get("/active", response_model=list[TimeLogWithTask])
async def get_active_time_logs(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await time_tracking.get_active_logs(db, current_user.id)


@router.get("", response_model=list[TimeLogWithTask])
async def get_time_logs(
    task_id: Optional[int] = None,
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await time_tracking.list_time_logs(
        db, current_user.id, task_id=task_id, day=day, start_date=start_date, end_date=end_date
    )


@router.post("/{time_log_id}:stop", response_model=TimeLogResponse)
async def stop_time_tracking(
    time_log_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await time_tracking.stop_tracking(db, time_log_id, current_user.id)


@router.post("/{time_log_id}:pause", response_model=TimeLogResponse)
async def pause_time_tracking(
    time_log_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await time_tracking.pause_tracking(db, time_log_id, current_user.id)
