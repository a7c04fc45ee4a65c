from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.models import User
from immicrm.auth.service import ensure_user_reference
from immicrm.cases.models import Case
from immicrm.clients.models import Client
from immicrm.common.exceptions import NotFoundError
from immicrm.tasks.models import TASK_STATUS_COMPLETED, Task
from immicrm.tasks.schemas import TaskCreate, TaskListItem, TaskUpdate


def _completed_at_for(status: str, previous: Optional[datetime] = None) -> Optional[datetime]:
    """Derive completed_at: stamped on entering Completed, kept while Completed, cleared otherwise."""
    if status != TASK_STATUS_COMPLETED:
        return None
    return previous or datetime.now(timezone.utc)


async def _check_references(db: AsyncSession, case_id: Optional[int], assigned_to: Optional[int]) -> None:
    if case_id is not None:
        case = await db.execute(select(Case.id).where(Case.id == case_id))
        if case.scalar_one_or_none() is None:
            raise NotFoundError("Case not found")
    if assigned_to is not None:
        await ensure_user_reference(db, assigned_to, "assigned_to")


async def get_tasks(db: AsyncSession, assigned_to: Optional[int] = None) -> list[TaskListItem]:
    """All tasks, or only those assigned to ``assigned_to``.

    Ordered by due date ascending with undated tasks last. The assignee name
    is joined only for the unfiltered list.
    """
    query = (
        select(Task, Case.case_number, Client.name)
        .outerjoin(Case, Task.case_id == Case.id)
        .outerjoin(Client, Case.client_id == Client.id)
    )
    if assigned_to is not None:
        query = query.where(Task.assigned_to == assigned_to)
    else:
        query = query.add_columns(User.full_name).outerjoin(User, Task.assigned_to == User.id)
    query = query.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc())

    result = await db.execute(query)
    items = []
    for row in result.all():
        task, case_number, client_name = row[0], row[1], row[2]
        update = {"case_number": case_number, "client_name": client_name}
        if assigned_to is None:
            update["assigned_to_name"] = row[3]
        items.append(TaskListItem.model_validate(task).model_copy(update=update))
    return items


async def get_task(db: AsyncSession, task_id: int) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def create_task(db: AsyncSession, data: TaskCreate, created_by: int) -> Task:
    await _check_references(db, data.case_id, data.assigned_to)

    task = Task(
        **data.model_dump(),
        created_by=created_by,
        completed_at=_completed_at_for(data.status),
    )
    db.add(task)
    await db.flush()
    await db.refresh(task)
    return task


async def update_task(db: AsyncSession, task: Task, data: TaskUpdate) -> Task:
    await _check_references(db, None, data.assigned_to)

    previous = task.completed_at if task.status == TASK_STATUS_COMPLETED else None
    for field, value in data.model_dump().items():
        setattr(task, field, value)
    task.completed_at = _completed_at_for(data.status, previous)

    await db.flush()
    await db.refresh(task)
    return task


async def delete_task(db: AsyncSession, task: Task) -> None:
    await db.delete(task)
    await db.flush()
