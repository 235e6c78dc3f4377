import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.core.exceptions import NotFoundError, ForbiddenError, ValidationError
from timetrack.models.task import (
    Task, TaskStatus, TaskPriority, TaskStatusHistory, TaskPriorityHistory, TaskRemark,
    CLOSED_STATUSES, PRIORITY_RANK,
)
from timetrack.models.daily_summary import DailySummary
from timetrack.models.time_log import TimeLog
from timetrack.services.daily_summary import recompute_daily_summary
from timetrack.services.narrative import NarrativeGenerator, UpstreamError
from timetrack.utils.dates import as_naive_utc, day_bucket, utcnow

logger = logging.getLogger(__name__)

# Tasks closer than this to their deadline float to the top of the ongoing list.
URGENT_WINDOW = timedelta(minutes=5)


def set_task_status(task: Task, status: TaskStatus, now: datetime) -> bool:
    """Move the task to ``status`` and record it; a no-op when already there."""
    if task.status == status:
        return False
    task.status = status
    task.status_history.append(TaskStatusHistory(status=status, changed_at=now))
    task.updated_at = now
    return True


def set_task_priority(task: Task, priority: TaskPriority, now: datetime) -> bool:
    if task.priority == priority:
        return False
    task.priority = priority
    task.priority_history.append(TaskPriorityHistory(priority=priority, changed_at=now))
    task.updated_at = now
    return True


def _append_remark(task: Task, text: Optional[str], now: datetime) -> None:
    if text is None or not text.strip():
        raise ValidationError("Please provide remark text")
    task.remarks.append(TaskRemark(text=text.strip(), created_at=now))
    task.updated_at = now


async def get_owned_task(db: AsyncSession, task_id: int, user_id: int) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    if task.user_id != user_id:
        raise ForbiddenError("Not authorized to access this task")
    return task


async def create_task(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    deadline: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Task:
    now = now or utcnow()
    if not title or not title.strip():
        raise ValidationError("Please provide a task title")

    task = Task(
        title=title.strip(),
        description=description.strip() if description else description,
        status=TaskStatus.PENDING,
        priority=priority,
        deadline=as_naive_utc(deadline) if deadline else None,
        user_id=user_id,
        created_at=now,
        updated_at=now,
        status_history=[TaskStatusHistory(status=TaskStatus.PENDING, changed_at=now)],
        priority_history=[TaskPriorityHistory(priority=priority, changed_at=now)],
        remarks=[],
    )
    db.add(task)
    await db.commit()
    logger.info("Created task %s for user %s", task.id, user_id)
    return task


async def create_task_with_assist(
    db: AsyncSession,
    user_id: int,
    user_input: str,
    generator: NarrativeGenerator,
) -> Tuple[Task, str, str]:
    if not user_input or not user_input.strip():
        raise ValidationError("Please describe the task")

    try:
        title_result = await generator.generate_task_title(user_input)
        title, title_message = title_result.text, title_result.message
    except UpstreamError as e:
        logger.warning("Title generation failed, using input: %s", e)
        title, title_message = user_input.strip(), "Failed to generate title, using input as fallback"

    try:
        description_result = await generator.generate_task_description(title)
        description, description_message = description_result.text, description_result.message
    except UpstreamError as e:
        logger.warning("Description generation failed: %s", e)
        description = f'Description for "{title}"'
        description_message = "Failed to generate description, using fallback"

    task = await create_task(db, user_id, title, description)
    return task, title_message, description_message


async def list_tasks(
    db: AsyncSession,
    user_id: int,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    sort_by: str = "created",
) -> List[Task]:
    query = select(Task).where(Task.user_id == user_id)
    if status is not None:
        query = query.where(Task.status == status)
    if priority is not None:
        query = query.where(Task.priority == priority)
    tasks = list((await db.execute(query.order_by(Task.created_at.desc(), Task.id.desc()))).scalars().all())

    if sort_by == "priority":
        tasks.sort(key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
    elif sort_by == "deadline":
        tasks.sort(key=lambda t: (t.deadline is None, t.deadline or datetime.max))
    return tasks


async def list_ongoing_tasks(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> List[Task]:
    now = now or utcnow()
    result = await db.execute(
        select(Task)
        .where(Task.user_id == user_id)
        .where(Task.status.notin_(list(CLOSED_STATUSES)))
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    tasks = list(result.scalars().all())

    def sort_key(task: Task):
        remaining = task.deadline - now if task.deadline else None
        if remaining is not None and remaining < URGENT_WINDOW:
            return (0, remaining.total_seconds(), 0)
        return (1, 0.0, -PRIORITY_RANK[task.priority])

    return sorted(tasks, key=sort_key)


async def get_task_detail(db: AsyncSession, task_id: int, user_id: int) -> Tuple[Task, List[TimeLog]]:
    task = await get_owned_task(db, task_id, user_id)
    result = await db.execute(
        select(TimeLog)
        .where(TimeLog.task_id == task.id)
        .order_by(TimeLog.start_time)
    )
    return task, list(result.scalars().all())


async def update_task(
    db: AsyncSession,
    task_id: int,
    user_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    deadline: Optional[datetime] = None,
    remark: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Task:
    now = now or utcnow()
    task = await get_owned_task(db, task_id, user_id)

    if title is not None:
        if not title.strip():
            raise ValidationError("Task title cannot be blank")
        task.title = title.strip()
    if description is not None:
        task.description = description
    if deadline is not None:
        task.deadline = as_naive_utc(deadline)
    if status is not None:
        set_task_status(task, status, now)
    if priority is not None:
        set_task_priority(task, priority, now)
    if remark:
        _append_remark(task, remark, now)

    task.updated_at = now
    await db.commit()
    return task


async def update_task_status(
    db: AsyncSession, task_id: int, user_id: int, status: Optional[TaskStatus], now: Optional[datetime] = None
) -> Task:
    if status is None:
        raise ValidationError("Please provide a status")
    task = await get_owned_task(db, task_id, user_id)
    if set_task_status(task, status, now or utcnow()):
        await db.commit()
    return task


async def update_task_priority(
    db: AsyncSession, task_id: int, user_id: int, priority: Optional[TaskPriority], now: Optional[datetime] = None
) -> Task:
    if priority is None:
        raise ValidationError("Please provide a priority")
    task = await get_owned_task(db, task_id, user_id)
    if set_task_priority(task, priority, now or utcnow()):
        await db.commit()
    return task


async def add_remark(
    db: AsyncSession, task_id: int, user_id: int, text: Optional[str], now: Optional[datetime] = None
) -> Task:
    task = await get_owned_task(db, task_id, user_id)
    _append_remark(task, text, now or utcnow())
    await db.commit()
    return task


async def delete_task(db: AsyncSession, task_id: int, user_id: int) -> None:
    """Delete a task and its time logs, then rebuild the summaries it appeared in."""
    task = await get_owned_task(db, task_id, user_id)

    days = set((await db.execute(
        select(TimeLog.date).where(TimeLog.task_id == task.id).distinct()
    )).scalars().all())
    days.add(day_bucket(task.created_at))
    summarized = (await db.execute(
        select(DailySummary.date)
        .where(DailySummary.user_id == user_id)
        .where(DailySummary.date.in_(sorted(days)))
    )).scalars().all()

    await db.execute(delete(TimeLog).where(TimeLog.task_id == task.id))
    await db.delete(task)
    await db.flush()

    for day in sorted(summarized):
        await recompute_daily_summary(db, user_id, day)
    await db.commit()
    logger.info("Deleted task %s for user %s", task_id, user_id)
