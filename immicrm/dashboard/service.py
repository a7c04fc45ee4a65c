from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.cases.models import CASE_STATUS_CLOSED, Case
from immicrm.clients.models import Client
from immicrm.dashboard.schemas import DashboardStats
from immicrm.documents.models import DOCUMENT_STATUS_PENDING, Document
from immicrm.tasks.models import TASK_STATUS_COMPLETED, Task


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Five independent counts.

    Each count is its own SELECT, so concurrent writes between them can make
    the figures disagree slightly with one another.
    """
    total_clients = (await db.execute(select(func.count(Client.id)))).scalar_one()
    total_cases = (await db.execute(select(func.count(Case.id)))).scalar_one()
    active_cases = (
        await db.execute(select(func.count(Case.id)).where(Case.status != CASE_STATUS_CLOSED))
    ).scalar_one()
    pending_tasks = (
        await db.execute(select(func.count(Task.id)).where(Task.status != TASK_STATUS_COMPLETED))
    ).scalar_one()
    pending_documents = (
        await db.execute(select(func.count(Document.id)).where(Document.status == DOCUMENT_STATUS_PENDING))
    ).scalar_one()

    return DashboardStats(
        total_clients=total_clients,
        total_cases=total_cases,
        active_cases=active_cases,
        pending_tasks=pending_tasks,
        pending_documents=pending_documents,
    )
