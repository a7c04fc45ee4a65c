from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from immicrm.cases.schemas import CaseResponse
from immicrm.common.validators import check_email


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    nationality: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    passport_number: Optional[str] = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class ClientUpdate(BaseModel):
    """Full replacement: every field must be sent, optional ones as null."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    nationality: Optional[str] = Field(max_length=100)
    address: Optional[str]
    date_of_birth: Optional[date]
    passport_number: Optional[str] = Field(max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class ClientResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    nationality: Optional[str]
    address: Optional[str]
    date_of_birth: Optional[date]
    passport_number: Optional[str]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientListItem(ClientResponse):
    created_by_name: Optional[str] = None


class ClientDetail(ClientResponse):
    cases: list[CaseResponse] = []
