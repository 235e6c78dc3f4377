"""Daily aggregation of tracked time.

A task belongs to a user's day when either a time log of that day references
it or the task was created inside the day window. Both sides use the same
naive-UTC day boundary, so a summary never mixes two definitions of "today".
"""
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, or_, and_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.core.exceptions import NotFoundError, ForbiddenError
from timetrack.models.daily_summary import DailySummary, DailySummaryTask
from timetrack.models.task import Task, TaskStatus
from timetrack.models.time_log import TimeLog
from timetrack.services.narrative import NarrativeGenerator, UpstreamError, build_narrative_input
from timetrack.utils.dates import day_bounds, duration_ms, utcnow

logger = logging.getLogger(__name__)

NARRATIVE_UNAVAILABLE = "Narrative generation is currently unavailable; showing the stored summary"


def classify_statuses(statuses: Iterable[Optional[TaskStatus]]) -> Tuple[int, int, int]:
    """Return (completed, in_progress, pending); anything not completed or in progress is pending."""
    completed = in_progress = pending = 0
    for status in statuses:
        if status == TaskStatus.COMPLETED:
            completed += 1
        elif status == TaskStatus.IN_PROGRESS:
            in_progress += 1
        else:
            pending += 1
    return completed, in_progress, pending


def apply_counts(summary: DailySummary) -> None:
    summary.completed_tasks, summary.in_progress_tasks, summary.pending_tasks = classify_statuses(
        entry.status for entry in summary.tasks
    )
    summary.total_time_spent = sum(entry.time_spent for entry in summary.tasks)


_UPSERT_DIALECTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def _insert_ignoring_duplicates(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect not in _UPSERT_DIALECTS:
        raise RuntimeError(f"Daily summaries need PostgreSQL or SQLite, not {dialect!r}")
    return _UPSERT_DIALECTS[dialect](DailySummary)


async def _load_or_create_summary(db: AsyncSession, user_id: int, day: date, now: datetime) -> DailySummary:
    locate = (
        select(DailySummary)
        .where(DailySummary.user_id == user_id)
        .where(DailySummary.date == day)
        .with_for_update()
    )
    summary = (await db.execute(locate)).scalar_one_or_none()
    if summary is not None:
        return summary

    # Concurrent creators collapse onto the (user_id, date) unique constraint.
    await db.execute(
        _insert_ignoring_duplicates(db)
        .values(
            user_id=user_id,
            date=day,
            total_time_spent=0,
            completed_tasks=0,
            in_progress_tasks=0,
            pending_tasks=0,
            summary="",
            daily_score=0,
            created_at=now,
            updated_at=now,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "date"])
    )
    return (await db.execute(locate)).scalar_one()


async def _time_spent_by_task(db: AsyncSession, user_id: int, day: date) -> Dict[int, int]:
    result = await db.execute(
        select(TimeLog.task_id, TimeLog.duration, TimeLog.start_time, TimeLog.end_time)
        .where(TimeLog.user_id == user_id)
        .where(TimeLog.date == day)
    )
    spent: Dict[int, int] = {}
    for task_id, duration, start_time, end_time in result.all():
        # Open logs have no end yet and contribute nothing.
        amount = duration if duration is not None else duration_ms(start_time, end_time)
        spent[task_id] = spent.get(task_id, 0) + amount
    return spent


async def _tasks_for_day(db: AsyncSession, user_id: int, day: date, tracked_ids: Iterable[int]) -> List[Task]:
    start, end = day_bounds(day)
    result = await db.execute(
        select(Task)
        .where(Task.user_id == user_id)
        .where(or_(
            Task.id.in_(list(tracked_ids)),
            and_(Task.created_at >= start, Task.created_at < end),
        ))
        .order_by(Task.id)
    )
    return list(result.scalars().all())


def _sync_entries(summary: DailySummary, tasks: List[Task], spent: Dict[int, int]) -> None:
    """Rewrite the snapshot entries in place so unchanged days keep their rows."""
    entries = list(summary.tasks)
    for position, task in enumerate(tasks):
        if position < len(entries):
            entry = entries[position]
        else:
            entry = DailySummaryTask()
            summary.tasks.append(entry)
        entry.position = position
        entry.task_id = task.id
        entry.task_title = task.title
        entry.time_spent = spent.get(task.id, 0)
        entry.status = task.status
    for stale in entries[len(tasks):]:
        summary.tasks.remove(stale)


async def recompute_daily_summary(
    db: AsyncSession, user_id: int, day: date, now: Optional[datetime] = None
) -> DailySummary:
    """Rebuild the (user, day) snapshot from current task and log state.

    Flushes but does not commit; the calling operation owns the transaction,
    so the snapshot is written together with whatever triggered it.
    """
    now = now or utcnow()
    summary = await _load_or_create_summary(db, user_id, day, now)
    spent = await _time_spent_by_task(db, user_id, day)
    tasks = await _tasks_for_day(db, user_id, day, spent.keys())

    _sync_entries(summary, tasks, spent)
    apply_counts(summary)
    summary.updated_at = now
    await db.flush()

    logger.info(
        "Recomputed daily summary user=%s date=%s tasks=%d total_ms=%d",
        user_id, day, len(summary.tasks), summary.total_time_spent,
    )
    return summary


async def get_owned_summary(db: AsyncSession, summary_id: int, user_id: int) -> DailySummary:
    summary = await db.get(DailySummary, summary_id)
    if summary is None:
        raise NotFoundError("Daily summary", summary_id)
    if summary.user_id != user_id:
        raise ForbiddenError("Not authorized to access this daily summary")
    return summary


async def get_summary_for_date(
    db: AsyncSession, user_id: int, day: date, now: Optional[datetime] = None
) -> DailySummary:
    summary = await recompute_daily_summary(db, user_id, day, now)
    await db.commit()
    return summary


async def get_summary(db: AsyncSession, summary_id: int, user_id: int) -> DailySummary:
    summary = await get_owned_summary(db, summary_id, user_id)
    summary = await recompute_daily_summary(db, user_id, summary.date)
    await db.commit()
    return summary


async def list_summaries(
    db: AsyncSession,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[DailySummary]:
    query = select(DailySummary).where(DailySummary.user_id == user_id)
    if start_date is not None:
        query = query.where(DailySummary.date >= start_date)
    if end_date is not None:
        query = query.where(DailySummary.date <= end_date)
    summaries = list((await db.execute(query.order_by(DailySummary.date.desc()))).scalars().all())

    task_ids = {entry.task_id for summary in summaries for entry in summary.tasks if entry.task_id is not None}
    if not task_ids:
        return summaries

    rows = await db.execute(select(Task.id, Task.status).where(Task.id.in_(sorted(task_ids))))
    current = {task_id: status for task_id, status in rows.all()}

    changed = False
    for summary in summaries:
        dirty = False
        for entry in summary.tasks:
            status = current.get(entry.task_id)
            if status is not None and status != entry.status:
                entry.status = status
                dirty = True
        if dirty:
            apply_counts(summary)
            changed = True
    if changed:
        await db.commit()
    return summaries


async def generate_narrative(
    db: AsyncSession, summary_id: int, user_id: int, generator: NarrativeGenerator
) -> Tuple[DailySummary, str]:
    summary = await get_owned_summary(db, summary_id, user_id)
    try:
        result = await generator.generate_daily_summary(build_narrative_input(summary))
    except UpstreamError as e:
        logger.warning("Narrative generation failed for summary %s: %s", summary.id, e)
        return summary, NARRATIVE_UNAVAILABLE

    summary.summary = result.text
    summary.updated_at = utcnow()
    await db.commit()
    return summary, result.message
