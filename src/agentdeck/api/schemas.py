"""Request and response bodies specific to the HTTP surface."""

from pydantic import BaseModel, Field

from agentdeck.domain.models import AgentOrder, CamelModel


class ReorderRequest(BaseModel):
    """Body of PATCH /agents/reorder."""

    agents: list[AgentOrder] = Field(min_length=1, max_length=1000)


class CancelResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    database: str
    model: str
    version: str


class QueueEntry(BaseModel):
    id: str
    timestamp: str


class QueueStatus(CamelModel):
    active_executions: int
    max_concurrent: int
    queued_count: int
    queue: list[QueueEntry]
