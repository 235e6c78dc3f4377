from pydantic import BaseModel
from datetime import datetime, date
from typing import Optional, List
from timetrack.models.task import TaskStatus, TaskPriority

class TimeLogTask(BaseModel):
    id: int
    title: str
    status: TaskStatus
    priority: TaskPriority

    model_config = {"from_attributes": True}

class TimeLogResponse(BaseModel):
    id: int
    task_id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]  # milliseconds
    date: date
    is_active: bool

    model_config = {"from_attributes": True}

class TimeLogWithTask(TimeLogResponse):
    task: Optional[TimeLogTask] = None

class TaskTimeLogsResponse(BaseModel):
    task_id: int
    count: int
    total_time_spent: int  # milliseconds
    time_logs: List[TimeLogResponse]
