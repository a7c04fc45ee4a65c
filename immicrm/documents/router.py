from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.schemas import Identity
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity
from immicrm.documents.schemas import DocumentCreate, DocumentListItem, DocumentResponse, DocumentUpdate
from immicrm.documents.service import create_document, delete_document, get_document, get_documents, update_document

router = APIRouter()


@router.get("", response_model=list[DocumentListItem])
async def list_documents(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    case_id: Optional[int] = None,
):
    return await get_documents(db, case_id=case_id)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document_detail(
    document_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_document(db, document_id)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_new_document(
    data: DocumentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await create_document(db, data, identity.id)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_existing_document(
    document_id: int,
    data: DocumentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    document = await get_document(db, document_id)
    return await update_document(db, document, data)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_document(
    document_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    document = await get_document(db, document_id)
    await delete_document(db, document)
