from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.schemas import Identity
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity
from immicrm.interactions.schemas import (
    InteractionCreate,
    InteractionListItem,
    InteractionResponse,
    InteractionUpdate,
)
from immicrm.interactions.service import (
    create_interaction,
    delete_interaction,
    get_interaction,
    get_interactions,
    update_interaction,
)

router = APIRouter()


@router.get("", response_model=list[InteractionListItem])
async def list_interactions(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
    client_id: Optional[int] = None,
):
    return await get_interactions(db, client_id=client_id)


@router.get("/{interaction_id}", response_model=InteractionResponse)
async def get_interaction_detail(
    interaction_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_interaction(db, interaction_id)


@router.post("", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED)
async def log_interaction(
    data: InteractionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await create_interaction(db, data, identity.id)


@router.put("/{interaction_id}", response_model=InteractionResponse)
async def update_existing_interaction(
    interaction_id: int,
    data: InteractionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    interaction = await get_interaction(db, interaction_id)
    return await update_interaction(db, interaction, data)


@router.delete("/{interaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_interaction(
    interaction_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    interaction = await get_interaction(db, interaction_id)
    await delete_interaction(db, interaction)
