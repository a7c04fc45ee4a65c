import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.models import User
from immicrm.cases.models import Case
from immicrm.cases.schemas import CaseResponse
from immicrm.cases.service import delete_case_children
from immicrm.clients.models import Client
from immicrm.clients.schemas import ClientCreate, ClientDetail, ClientListItem, ClientUpdate
from immicrm.common.exceptions import NotFoundError
from immicrm.interactions.models import Interaction

logger = logging.getLogger(__name__)


async def get_clients(db: AsyncSession) -> list[ClientListItem]:
    result = await db.execute(
        select(Client, User.full_name)
        .outerjoin(User, Client.created_by == User.id)
        .order_by(Client.created_at.desc(), Client.id.desc())
    )
    return [
        ClientListItem.model_validate(client).model_copy(update={"created_by_name": creator_name})
        for client, creator_name in result.all()
    ]


async def get_client(db: AsyncSession, client_id: int) -> Client:
    result = await db.execute(select(Client).where(Client.id == client_id))
    client = result.scalar_one_or_none()
    if client is None:
        raise NotFoundError("Client not found")
    return client


async def get_client_detail(db: AsyncSession, client_id: int) -> ClientDetail:
    client = await get_client(db, client_id)
    cases = await db.execute(select(Case).where(Case.client_id == client_id).order_by(Case.id.asc()))
    return ClientDetail.model_validate(client).model_copy(
        update={"cases": [CaseResponse.model_validate(c) for c in cases.scalars().all()]}
    )


async def create_client(db: AsyncSession, data: ClientCreate, created_by: int) -> Client:
    client = Client(**data.model_dump(), created_by=created_by)
    db.add(client)
    await db.flush()
    await db.refresh(client)
    return client


async def update_client(db: AsyncSession, client: Client, data: ClientUpdate) -> Client:
    for field, value in data.model_dump().items():
        setattr(client, field, value)
    client.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(client)
    return client


async def delete_client(db: AsyncSession, client: Client) -> None:
    """Delete a client with its cases (and their notes, tasks, documents) and interactions.

    Every statement runs in the request transaction, so either all rows go or none do.
    """
    client_id = client.id
    case_ids = select(Case.id).where(Case.client_id == client_id)
    case_count = (await db.execute(select(func.count(Case.id)).where(Case.client_id == client_id))).scalar_one()

    await delete_case_children(db, case_ids)
    await db.execute(delete(Case).where(Case.client_id == client_id).execution_options(synchronize_session=False))
    await db.execute(
        delete(Interaction).where(Interaction.client_id == client_id).execution_options(synchronize_session=False)
    )
    await db.delete(client)
    await db.flush()
    logger.info("Deleted client id=%s and %d case(s)", client_id, case_count)
