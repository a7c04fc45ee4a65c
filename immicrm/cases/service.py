import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from immicrm.auth.models import User
from immicrm.auth.service import ensure_user_reference
from immicrm.cases.models import Case, CaseNote
from immicrm.cases.numbering import generate_case_number
from immicrm.cases.schemas import (
    CaseCreate,
    CaseDetail,
    CaseListItem,
    CaseNoteCreate,
    CaseNoteResponse,
    CaseUpdate,
)
from immicrm.clients.models import Client
from immicrm.common.exceptions import ConflictError, NotFoundError
from immicrm.documents.models import Document
from immicrm.tasks.models import Task

logger = logging.getLogger(__name__)

Assignee = aliased(User, name="assignee")


def _case_list_query() -> Select:
    return (
        select(Case, Client.name, Client.email, Assignee.full_name)
        .outerjoin(Client, Case.client_id == Client.id)
        .outerjoin(Assignee, Case.assigned_to == Assignee.id)
    )


# ── Case CRUD ────────────────────────────────────────────────────────


async def get_case(db: AsyncSession, case_id: int) -> Case:
    result = await db.execute(select(Case).where(Case.id == case_id))
    case = result.scalar_one_or_none()
    if case is None:
        raise NotFoundError("Case not found")
    return case


async def get_cases(
    db: AsyncSession,
    client_id: Optional[int] = None,
    status: Optional[str] = None,
) -> list[CaseListItem]:
    query = _case_list_query()
    if client_id is not None:
        query = query.where(Case.client_id == client_id)
    if status:
        query = query.where(Case.status == status)

    result = await db.execute(query.order_by(Case.created_at.desc(), Case.id.desc()))
    return [
        CaseListItem.model_validate(case).model_copy(
            update={"client_name": client_name, "assigned_to_name": assignee_name}
        )
        for case, client_name, _client_email, assignee_name in result.all()
    ]


async def get_case_detail(db: AsyncSession, case_id: int) -> CaseDetail:
    result = await db.execute(_case_list_query().where(Case.id == case_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Case not found")

    case, client_name, client_email, assignee_name = row
    notes = await get_case_notes(db, case_id)
    return CaseDetail.model_validate(case).model_copy(
        update={
            "client_name": client_name,
            "client_email": client_email,
            "assigned_to_name": assignee_name,
            "notes_list": notes,
        }
    )


async def create_case(db: AsyncSession, data: CaseCreate) -> Case:
    client = await db.execute(select(Client.id).where(Client.id == data.client_id))
    if client.scalar_one_or_none() is None:
        raise NotFoundError("Client not found")
    if data.assigned_to is not None:
        await ensure_user_reference(db, data.assigned_to, "assigned_to")

    case = Case(**data.model_dump(), case_number=generate_case_number())
    db.add(case)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning("Case number %s already taken", case.case_number)
        raise ConflictError("Case number already exists, please retry")
    await db.refresh(case)
    return case


async def update_case(db: AsyncSession, case: Case, data: CaseUpdate) -> Case:
    if data.assigned_to is not None:
        await ensure_user_reference(db, data.assigned_to, "assigned_to")

    for field, value in data.model_dump().items():
        setattr(case, field, value)
    case.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(case)
    return case


async def delete_case_children(db: AsyncSession, case_ids) -> None:
    """Remove notes, tasks and documents of the given cases.

    ``case_ids`` is a list of ids or a select of them. Runs in
    the caller's transaction.
    """
    for model in (CaseNote, Task, Document):
        await db.execute(
            delete(model).where(model.case_id.in_(case_ids)).execution_options(synchronize_session=False)
        )


async def delete_case(db: AsyncSession, case: Case) -> None:
    case_id, case_number = case.id, case.case_number
    await delete_case_children(db, [case_id])
    await db.delete(case)
    await db.flush()
    logger.info("Deleted case id=%s (%s) with its notes, tasks and documents", case_id, case_number)


# ── Case notes ───────────────────────────────────────────────────────


def _note_query() -> Select:
    return select(CaseNote, User.full_name, User.role).outerjoin(User, CaseNote.user_id == User.id)


def _note_response(note: CaseNote, user_name: Optional[str], user_role) -> CaseNoteResponse:
    return CaseNoteResponse.model_validate(note).model_copy(update={"user_name": user_name, "user_role": user_role})


async def get_case_notes(db: AsyncSession, case_id: int) -> list[CaseNoteResponse]:
    result = await db.execute(
        _note_query().where(CaseNote.case_id == case_id).order_by(CaseNote.created_at.desc(), CaseNote.id.desc())
    )
    return [_note_response(*row) for row in result.all()]


async def add_case_note(db: AsyncSession, case_id: int, user_id: int, data: CaseNoteCreate) -> CaseNoteResponse:
    await get_case(db, case_id)

    note = CaseNote(
        case_id=case_id,
        user_id=user_id,
        note_type=data.note_type,
        content=data.content,
        is_internal=data.is_internal,
    )
    db.add(note)
    await db.flush()

    result = await db.execute(_note_query().where(CaseNote.id == note.id))
    return _note_response(*result.one())


async def get_case_note(db: AsyncSession, note_id: int) -> CaseNote:
    result = await db.execute(select(CaseNote).where(CaseNote.id == note_id))
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFoundError("Note not found")
    return note


async def delete_case_note(db: AsyncSession, note: CaseNote) -> None:
    await db.delete(note)
    await db.flush()
