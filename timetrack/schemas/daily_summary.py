from pydantic import BaseModel
from datetime import datetime, date
from typing import Optional, List
from timetrack.models.task import TaskStatus

class DailySummaryTaskEntry(BaseModel):
    task_id: Optional[int]
    task_title: Optional[str]
    time_spent: int  # milliseconds
    status: Optional[TaskStatus]

    model_config = {"from_attributes": True}

class DailySummaryResponse(BaseModel):
    id: int
    user_id: int
    date: date
    tasks: List[DailySummaryTaskEntry]
    total_time_spent: int  # milliseconds
    completed_tasks: int
    in_progress_tasks: int
    pending_tasks: int
    summary: str
    daily_score: int
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class DailySummaryGenerate(BaseModel):
    date: date

class NarrativeResponse(BaseModel):
    summary: DailySummaryResponse
    narrative_message: str
