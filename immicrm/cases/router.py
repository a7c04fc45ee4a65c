from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.policy import Action, Resource, authorize
from immicrm.auth.schemas import Identity
from immicrm.cases.schemas import (
    CaseCreate,
    CaseDetail,
    CaseListItem,
    CaseNoteCreate,
    CaseNoteResponse,
    CaseResponse,
    CaseUpdate,
)
from immicrm.cases.service import (
    add_case_note,
    create_case,
    delete_case,
    delete_case_note,
    get_case,
    get_case_detail,
    get_case_note,
    get_case_notes,
    get_cases,
    update_case,
)
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity, require_permission
from immicrm.documents.schemas import DocumentListItem
from immicrm.documents.service import get_documents

router = APIRouter()
notes_router = APIRouter()


@router.get("", response_model=list[CaseListItem])
async def list_cases(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    client_id: Optional[int] = None,
    status: Optional[str] = None,
):
    return await get_cases(db, client_id=client_id, status=status)


@router.get("/{case_id}", response_model=CaseDetail)
async def get_case_view(
    case_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_case_detail(db, case_id)


@router.post("", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def create_new_case(
    data: CaseCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await create_case(db, data)


@router.put("/{case_id}", response_model=CaseResponse)
async def update_existing_case(
    case_id: int,
    data: CaseUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    case = await get_case(db, case_id)
    return await update_case(db, case, data)


@router.delete("/{case_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_case(
    case_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_permission(Action.delete, Resource.case))],
):
    case = await get_case(db, case_id)
    await delete_case(db, case)


# ── Notes and documents of a case ────────────────────────────────────


@router.get("/{case_id}/notes", response_model=list[CaseNoteResponse])
async def list_case_notes(
    case_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_case_notes(db, case_id)


@router.post("/{case_id}/notes", response_model=CaseNoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note_to_case(
    case_id: int,
    data: CaseNoteCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await add_case_note(db, case_id, identity.id, data)


@router.get("/{case_id}/documents", response_model=list[DocumentListItem])
async def list_case_documents(
    case_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_documents(db, case_id=case_id)


@notes_router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    note = await get_case_note(db, note_id)
    authorize(identity, Action.delete, Resource.case_note, owner_id=note.user_id)
    await delete_case_note(db, note)
