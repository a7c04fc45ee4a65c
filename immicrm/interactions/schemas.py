from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from immicrm.common.validators import to_utc


class InteractionCreate(BaseModel):
    client_id: int
    type: str = Field(min_length=1, max_length=50)
    notes: str = Field(min_length=1)
    interaction_date: Optional[datetime] = None

    @field_validator("interaction_date")
    @classmethod
    def normalise_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class InteractionUpdate(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    notes: str = Field(min_length=1)
    interaction_date: datetime

    @field_validator("interaction_date")
    @classmethod
    def normalise_date(cls, v: datetime) -> datetime:
        return to_utc(v)


class InteractionResponse(BaseModel):
    id: int
    client_id: int
    user_id: int
    type: str
    notes: str
    interaction_date: datetime

    model_config = {"from_attributes": True}

    # SQLite hands back naive UTC values
    @field_validator("interaction_date")
    @classmethod
    def mark_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class InteractionListItem(InteractionResponse):
    client_name: Optional[str] = None
    user_name: Optional[str] = None
