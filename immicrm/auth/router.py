from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.policy import Action, Resource
from immicrm.auth.schemas import Identity, LoginRequest, LoginResponse, UserCreate, UserResponse
from immicrm.auth.service import create_user, get_user, get_users, login
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity, require_permission

router = APIRouter()
users_router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Identity, Depends(require_permission(Action.create, Resource.user))],
):
    return await create_user(db, data)


@router.post("/login", response_model=LoginResponse)
async def login_user(data: LoginRequest, db: Annotated[AsyncSession, Depends(get_db)]):
    token, user = await login(db, data.username, data.password)
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_user(db, identity.id)


# ── Users ────────────────────────────────────────────────────────────


@users_router.get("", response_model=list[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_users(db)
