from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from timetrack.database import get_db
from timetrack.core.auth import get_current_user
from timetrack.models.task import TaskStatus, TaskPriority
from timetrack.schemas.task import (
    TaskCreate, TaskAssistCreate, TaskUpdate, TaskUpdateStatus, TaskUpdatePriority, RemarkCreate,
    TaskResponse, TaskDetailResponse, TaskAssistResponse, TaskSortBy,
)
from timetrack.schemas.time_log import TimeLogResponse, TaskTimeLogsResponse
from timetrack.services import tasks as task_service
from timetrack.services import time_tracking
from timetrack.services.narrative import NarrativeGenerator, get_narrative_generator

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.create_task(
        db,
        current_user.id,
        title=task_in.title,
        description=task_in.description,
        priority=task_in.priority,
        deadline=task_in.deadline,
    )


@router.post("/assist", response_model=TaskAssistResponse, status_code=status.HTTP_201_CREATED)
async def create_task_with_assist(
    task_in: TaskAssistCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    generator: NarrativeGenerator = Depends(get_narrative_generator)
):
    task, title_message, description_message = await task_service.create_task_with_assist(
        db, current_user.id, task_in.user_input, generator
    )
    return TaskAssistResponse(
        task=TaskResponse.model_validate(task),
        title_message=title_message,
        description_message=description_message,
    )


@router.get("", response_model=list[TaskResponse])
async def get_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    sort_by: TaskSortBy = "created",
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.list_tasks(db, current_user.id, status=status, priority=priority, sort_by=sort_by)


@router.get("/ongoing", response_model=list[TaskResponse])
async def get_ongoing_tasks(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.list_ongoing_tasks(db, current_user.id)


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    task, time_logs = await task_service.get_task_detail(db, task_id, current_user.id)
    return TaskDetailResponse(
        task=TaskResponse.model_validate(task),
        time_logs=[TimeLogResponse.model_validate(log) for log in time_logs],
    )


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.update_task(
        db,
        task_id,
        current_user.id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status,
        priority=task_in.priority,
        deadline=task_in.deadline,
        remark=task_in.remarks,
    )


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await task_service.delete_task(db, task_id, current_user.id)
    return {"message": "Task deleted"}


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    status_in: TaskUpdateStatus,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.update_task_status(db, task_id, current_user.id, status_in.status)


@router.patch("/{task_id}/priority", response_model=TaskResponse)
async def update_task_priority(
    task_id: int,
    priority_in: TaskUpdatePriority,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.update_task_priority(db, task_id, current_user.id, priority_in.priority)


@router.post("/{task_id}/remarks", response_model=TaskResponse)
async def add_remark(
    task_id: int,
    remark_in: RemarkCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await task_service.add_remark(db, task_id, current_user.id, remark_in.text)


@router.post("/{task_id}/time-logs:start", response_model=TimeLogResponse, status_code=status.HTTP_201_CREATED)
async def start_time_tracking(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await time_tracking.start_tracking(db, task_id, current_user.id)


@router.get("/{task_id}/time-logs", response_model=TaskTimeLogsResponse)
async def get_task_time_logs(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    logs, total = await time_tracking.get_task_time_logs(db, task_id, current_user.id)
    return TaskTimeLogsResponse(
        task_id=task_id,
        count=len(logs),
        total_time_spent=total,
        time_logs=[TimeLogResponse.model_validate(log) for log in logs],
    )
