from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.schemas import Identity
from immicrm.dashboard.schemas import DashboardStats
from immicrm.dashboard.service import get_dashboard_stats
from immicrm.database import get_db
from immicrm.dependencies import get_current_identity

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_current_identity)],
):
    return await get_dashboard_stats(db)
