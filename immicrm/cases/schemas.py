from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from immicrm.auth.models import UserRole
from immicrm.cases.models import Priority


class CaseCreate(BaseModel):
    client_id: int
    case_type: str = Field(min_length=1, max_length=100)
    status: str = Field(min_length=1, max_length=50)
    priority: Priority = Priority.medium
    deadline: Optional[date] = None
    filing_date: Optional[date] = None
    assigned_to: Optional[int] = None
    notes: Optional[str] = None


class CaseUpdate(BaseModel):
    """Full replacement of the mutable case fields."""

    status: str = Field(min_length=1, max_length=50)
    priority: Priority
    deadline: Optional[date]
    filing_date: Optional[date]
    assigned_to: Optional[int]
    notes: Optional[str]


class CaseResponse(BaseModel):
    id: int
    client_id: int
    case_number: str
    case_type: str
    status: str
    priority: Priority
    deadline: Optional[date]
    filing_date: Optional[date]
    assigned_to: Optional[int]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CaseListItem(CaseResponse):
    client_name: Optional[str] = None
    assigned_to_name: Optional[str] = None


# ── Case notes ───────────────────────────────────────────────────────


class CaseNoteCreate(BaseModel):
    note_type: str = Field(default="General", min_length=1, max_length=50)
    content: str = Field(min_length=1)
    is_internal: bool = False


class CaseNoteResponse(BaseModel):
    id: int
    case_id: int
    user_id: int
    note_type: str
    content: str
    is_internal: bool
    created_at: datetime
    user_name: Optional[str] = None
    user_role: Optional[UserRole] = None

    model_config = {"from_attributes": True}


class CaseDetail(CaseListItem):
    client_email: Optional[str] = None
    notes_list: list[CaseNoteResponse] = []
