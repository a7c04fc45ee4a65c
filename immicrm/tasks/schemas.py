from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from immicrm.cases.models import Priority
from immicrm.tasks.models import TASK_STATUS_TODO


class TaskCreate(BaseModel):
    case_id: Optional[int] = None
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    status: str = Field(default=TASK_STATUS_TODO, min_length=1, max_length=50)
    priority: Priority = Priority.medium
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    """Full replacement; ``completed_at`` follows ``status`` and is not accepted here."""

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str]
    assigned_to: Optional[int]
    status: str = Field(min_length=1, max_length=50)
    priority: Priority
    due_date: Optional[date]


class TaskResponse(BaseModel):
    id: int
    case_id: Optional[int]
    title: str
    description: Optional[str]
    assigned_to: Optional[int]
    created_by: Optional[int]
    status: str
    priority: Priority
    due_date: Optional[date]
    completed_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskListItem(TaskResponse):
    case_number: Optional[str] = None
    client_name: Optional[str] = None
    assigned_to_name: Optional[str] = None
