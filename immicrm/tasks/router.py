from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.schemas import Identity
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity
from immicrm.tasks.schemas import TaskCreate, TaskListItem, TaskResponse, TaskUpdate
from immicrm.tasks.service import create_task, delete_task, get_task, get_tasks, update_task

router = APIRouter()


@router.get("", response_model=list[TaskListItem])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    assigned_to: Optional[Literal["me"]] = None,
):
    return await get_tasks(db, assigned_to=identity.id if assigned_to == "me" else None)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task_detail(
    task_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_task(db, task_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_new_task(
    data: TaskCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await create_task(db, data, identity.id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_existing_task(
    task_id: int,
    data: TaskUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    task = await get_task(db, task_id)
    return await update_task(db, task, data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_task(
    task_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    task = await get_task(db, task_id)
    await delete_task(db, task)
