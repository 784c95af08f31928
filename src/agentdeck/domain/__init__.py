"""Domain models for agentdeck."""

from agentdeck.domain.models import (
    Agent,
    AgentCreate,
    AgentOrder,
    AgentTemplate,
    Execution,
    ExecutionStatus,
)

__all__ = [
    "Agent",
    "AgentCreate",
    "AgentOrder",
    "AgentTemplate",
    "Execution",
    "ExecutionStatus",
]
