from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.policy import Action, Resource
from immicrm.auth.schemas import Identity
from immicrm.clients.schemas import ClientCreate, ClientDetail, ClientListItem, ClientResponse, ClientUpdate
from immicrm.clients.service import create_client, delete_client, get_client, get_client_detail, get_clients, update_client
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity, require_permission

router = APIRouter()


@router.get("", response_model=list[ClientListItem])
async def list_clients(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_clients(db)


@router.get("/{client_id}", response_model=ClientDetail)
async def get_client_view(
    client_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_client_detail(db, client_id)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_new_client(
    data: ClientCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await create_client(db, data, identity.id)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_existing_client(
    client_id: int,
    data: ClientUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    client = await get_client(db, client_id)
    return await update_client(db, client, data)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_client(
    client_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_permission(Action.delete, Resource.client))],
):
    client = await get_client(db, client_id)
    await delete_client(db, client)
