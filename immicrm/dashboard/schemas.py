from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_clients: int = Field(alias="totalClients")
    total_cases: int = Field(alias="totalCases")
    active_cases: int = Field(alias="activeCases")
    pending_tasks: int = Field(alias="pendingTasks")
    pending_documents: int = Field(alias="pendingDocuments")

    model_config = {"populate_by_name": True}
