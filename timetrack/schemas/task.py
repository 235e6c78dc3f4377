from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Literal
from timetrack.models.task import TaskStatus, TaskPriority
from timetrack.schemas.time_log import TimeLogResponse

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Optional[datetime] = None

class TaskAssistCreate(BaseModel):
    user_input: str = Field(..., min_length=1, max_length=1000)

class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    deadline: Optional[datetime] = None
    remarks: Optional[str] = None  # appended as a new remark

class TaskUpdateStatus(BaseModel):
    status: Optional[TaskStatus] = None

class TaskUpdatePriority(BaseModel):
    priority: Optional[TaskPriority] = None

class RemarkCreate(BaseModel):
    text: Optional[str] = None

class StatusHistoryEntry(BaseModel):
    status: TaskStatus
    changed_at: datetime

    model_config = {"from_attributes": True}

class PriorityHistoryEntry(BaseModel):
    priority: TaskPriority
    changed_at: datetime

    model_config = {"from_attributes": True}

class RemarkResponse(BaseModel):
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}

class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    deadline: Optional[datetime]
    user_id: int
    status_history: List[StatusHistoryEntry]
    priority_history: List[PriorityHistoryEntry]
    remarks: List[RemarkResponse]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class TaskDetailResponse(BaseModel):
    task: TaskResponse
    time_logs: List[TimeLogResponse]

class TaskAssistResponse(BaseModel):
    task: TaskResponse
    title_message: str
    description_message: str

TaskSortBy = Literal["created", "priority", "deadline"]
