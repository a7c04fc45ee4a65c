from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.models import User
from immicrm.clients.models import Client
from immicrm.common.exceptions import NotFoundError
from immicrm.interactions.models import Interaction
from immicrm.interactions.schemas import InteractionCreate, InteractionListItem, InteractionUpdate


async def get_interactions(db: AsyncSession, client_id: Optional[int] = None) -> list[InteractionListItem]:
    query = (
        select(Interaction, Client.name, User.full_name)
        .outerjoin(Client, Interaction.client_id == Client.id)
        .outerjoin(User, Interaction.user_id == User.id)
    )
    if client_id is not None:
        query = query.where(Interaction.client_id == client_id)

    result = await db.execute(query.order_by(Interaction.interaction_date.desc(), Interaction.id.desc()))
    return [
        InteractionListItem.model_validate(interaction).model_copy(
            update={"client_name": client_name, "user_name": user_name}
        )
        for interaction, client_name, user_name in result.all()
    ]


async def get_interaction(db: AsyncSession, interaction_id: int) -> Interaction:
    result = await db.execute(select(Interaction).where(Interaction.id == interaction_id))
    interaction = result.scalar_one_or_none()
    if interaction is None:
        raise NotFoundError("Interaction not found")
    return interaction


async def create_interaction(db: AsyncSession, data: InteractionCreate, user_id: int) -> Interaction:
    client = await db.execute(select(Client.id).where(Client.id == data.client_id))
    if client.scalar_one_or_none() is None:
        raise NotFoundError("Client not found")

    values = data.model_dump()
    # Let the column default stamp the creation time
    if values.get("interaction_date") is None:
        values.pop("interaction_date")
    interaction = Interaction(**values, user_id=user_id)
    db.add(interaction)
    await db.flush()
    await db.refresh(interaction)
    return interaction


async def update_interaction(db: AsyncSession, interaction: Interaction, data: InteractionUpdate) -> Interaction:
    for field, value in data.model_dump().items():
        setattr(interaction, field, value)
    await db.flush()
    await db.refresh(interaction)
    return interaction


async def delete_interaction(db: AsyncSession, interaction: Interaction) -> None:
    await db.delete(interaction)
    await db.flush()
