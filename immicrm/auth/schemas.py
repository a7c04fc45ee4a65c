from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from immicrm.auth.models import UserRole
from immicrm.common.validators import check_email


class LoginRequest(BaseModel):
    username: str
    password: str


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=150)
    email: str = Field(max_length=255)
    password: str = Field(min_length=8, max_length=72)
    full_name: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.staff

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class Identity(BaseModel):
    """Claims carried by a validated access token.

    Trusted for the rest of the request without re-reading the users table,
    so a role change only takes effect once the user logs in again.
    """

    id: int
    username: str
    role: UserRole
