"""Start, pause and stop time measurement for a task.

Task status follows tracking: starting moves a task to In Progress, pausing
moves an In Progress task to On Hold. A closed log is never reopened;
resuming starts a fresh interval. Completed and Cancelled tasks refuse new
tracking.
"""
import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from timetrack.models.task import Task, TaskStatus, CLOSED_STATUSES
from timetrack.models.time_log import TimeLog
from timetrack.services.daily_summary import recompute_daily_summary
from timetrack.services.tasks import get_owned_task, set_task_status
from timetrack.utils.dates import day_bucket, duration_ms, utcnow

logger = logging.getLogger(__name__)


def _already_active() -> ConflictError:
    return ConflictError("TIME_LOG_ALREADY_ACTIVE", "Time tracking is already active for this task")


async def start_tracking(
    db: AsyncSession, task_id: int, user_id: int, now: Optional[datetime] = None
) -> TimeLog:
    now = now or utcnow()
    task = await get_owned_task(db, task_id, user_id)
    if task.status in CLOSED_STATUSES:
        raise ConflictError(
            "TASK_CLOSED",
            f"Task is {task.status.value} and cannot be tracked",
            details={"status": task.status.value},
        )

    active = await db.execute(
        select(TimeLog.id)
        .where(TimeLog.task_id == task.id)
        .where(TimeLog.user_id == user_id)
        .where(TimeLog.is_active.is_(True))
    )
    if active.first() is not None:
        raise _already_active()

    time_log = TimeLog(
        task_id=task.id,
        user_id=user_id,
        start_time=now,
        date=day_bucket(now),
        is_active=True,
        created_at=now,
    )
    db.add(time_log)
    set_task_status(task, TaskStatus.IN_PROGRESS, now)

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent start won the partial unique index.
        await db.rollback()
        raise _already_active()

    logger.info("Started time log %s on task %s for user %s", time_log.id, task.id, user_id)
    return time_log


async def _close_time_log(db: AsyncSession, time_log_id: int, user_id: int, now: datetime) -> TimeLog:
    time_log = await db.get(TimeLog, time_log_id)
    if time_log is None:
        raise NotFoundError("Time log", time_log_id)
    if time_log.user_id != user_id:
        raise ForbiddenError("Not authorized to access this time log")
    if time_log.end_time is not None or not time_log.is_active:
        raise ConflictError("TIME_LOG_ALREADY_STOPPED", "Time tracking is already stopped for this task")

    end_time = max(now, time_log.start_time)
    time_log.end_time = end_time
    time_log.duration = duration_ms(time_log.start_time, end_time)
    time_log.is_active = False
    return time_log


async def stop_tracking(
    db: AsyncSession, time_log_id: int, user_id: int, now: Optional[datetime] = None
) -> TimeLog:
    now = now or utcnow()
    time_log = await _close_time_log(db, time_log_id, user_id, now)
    await recompute_daily_summary(db, user_id, time_log.date, now)
    await db.commit()
    logger.info("Stopped time log %s after %d ms", time_log.id, time_log.duration)
    return time_log


async def pause_tracking(
    db: AsyncSession, time_log_id: int, user_id: int, now: Optional[datetime] = None
) -> TimeLog:
    now = now or utcnow()
    time_log = await _close_time_log(db, time_log_id, user_id, now)
    task = await db.get(Task, time_log.task_id)
    if task is not None and task.status == TaskStatus.IN_PROGRESS:
        set_task_status(task, TaskStatus.ON_HOLD, now)
    await recompute_daily_summary(db, user_id, time_log.date, now)
    await db.commit()
    logger.info("Paused time log %s after %d ms", time_log.id, time_log.duration)
    return time_log


async def get_active_logs(db: AsyncSession, user_id: int) -> List[TimeLog]:
    result = await db.execute(
        select(TimeLog)
        .where(TimeLog.user_id == user_id)
        .where(TimeLog.is_active.is_(True))
        .order_by(TimeLog.start_time)
    )
    return list(result.scalars().all())


async def list_time_logs(
    db: AsyncSession,
    user_id: int,
    task_id: Optional[int] = None,
    day: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[TimeLog]:
    query = select(TimeLog).where(TimeLog.user_id == user_id)
    if task_id is not None:
        query = query.where(TimeLog.task_id == task_id)
    if day is not None:
        query = query.where(TimeLog.date == day)
    else:
        if start_date is not None:
            query = query.where(TimeLog.date >= start_date)
        if end_date is not None:
            query = query.where(TimeLog.date <= end_date)
    result = await db.execute(query.order_by(TimeLog.start_time.desc(), TimeLog.id.desc()))
    return list(result.scalars().all())


async def get_task_time_logs(
    db: AsyncSession, task_id: int, user_id: int
) -> Tuple[List[TimeLog], int]:
    task = await get_owned_task(db, task_id, user_id)
    result = await db.execute(
        select(TimeLog)
        .where(TimeLog.task_id == task.id)
        .where(TimeLog.user_id == user_id)
        .order_by(TimeLog.start_time.desc(), TimeLog.id.desc())
    )
    logs = list(result.scalars().all())
    total = sum(
        log.duration if log.duration is not None else duration_ms(log.start_time, log.end_time)
        for log in logs
    )
    return logs, total
