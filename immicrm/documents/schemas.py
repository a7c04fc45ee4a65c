from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from immicrm.documents.models import DOCUMENT_STATUS_PENDING


class DocumentCreate(BaseModel):
    case_id: int
    document_type: str = Field(min_length=1, max_length=100)
    status: str = Field(default=DOCUMENT_STATUS_PENDING, min_length=1, max_length=50)
    notes: Optional[str] = None
    received_date: Optional[date] = None


class DocumentUpdate(BaseModel):
    status: str = Field(min_length=1, max_length=50)
    notes: Optional[str]
    received_date: Optional[date]


class DocumentResponse(BaseModel):
    id: int
    case_id: int
    document_type: str
    status: str
    notes: Optional[str]
    received_date: Optional[date]
    uploaded_by: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class DocumentListItem(DocumentResponse):
    case_number: Optional[str] = None
    client_name: Optional[str] = None
    uploaded_by_name: Optional[str] = None
