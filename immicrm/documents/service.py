from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.models import User
from immicrm.cases.models import Case
from immicrm.clients.models import Client
from immicrm.common.exceptions import NotFoundError
from immicrm.documents.models import Document
from immicrm.documents.schemas import DocumentCreate, DocumentListItem, DocumentUpdate


async def get_documents(db: AsyncSession, case_id: Optional[int] = None) -> list[DocumentListItem]:
    query = (
        select(Document, Case.case_number, Client.name, User.full_name)
        .outerjoin(Case, Document.case_id == Case.id)
        .outerjoin(Client, Case.client_id == Client.id)
        .outerjoin(User, Document.uploaded_by == User.id)
    )
    if case_id is not None:
        query = query.where(Document.case_id == case_id)

    result = await db.execute(query.order_by(Document.created_at.desc(), Document.id.desc()))
    return [
        DocumentListItem.model_validate(document).model_copy(
            update={"case_number": case_number, "client_name": client_name, "uploaded_by_name": uploader_name}
        )
        for document, case_number, client_name, uploader_name in result.all()
    ]


async def get_document(db: AsyncSession, document_id: int) -> Document:
    result = await db.execute(select(Document).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found")
    return document


async def create_document(db: AsyncSession, data: DocumentCreate, uploaded_by: int) -> Document:
    case = await db.execute(select(Case.id).where(Case.id == data.case_id))
    if case.scalar_one_or_none() is None:
        raise NotFoundError("Case not found")

    document = Document(**data.model_dump(), uploaded_by=uploaded_by)
    db.add(document)
    await db.flush()
    await db.refresh(document)
    return document


async def update_document(db: AsyncSession, document: Document, data: DocumentUpdate) -> Document:
    for field, value in data.model_dump().items():
        setattr(document, field, value)
    await db.flush()
    await db.refresh(document)
    return document


async def delete_document(db: AsyncSession, document: Document) -> None:
    await db.delete(document)
    await db.flush()
