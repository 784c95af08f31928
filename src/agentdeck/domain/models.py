"""Core domain models for agentdeck."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

MAX_TASKS_PER_AGENT = 50
MAX_TASK_LENGTH = 500

TaskText = Annotated[str, StringConstraints(min_length=1, max_length=MAX_TASK_LENGTH)]


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Execution lifecycle states."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AgentCreate(CamelModel):
    """Validated payload for creating or updating an agent."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(min_length=1, max_length=200)
    role: str = Field(min_length=1, max_length=200)
    goal: str = Field(min_length=1, max_length=1000)
    backstory: str = Field(min_length=1, max_length=2000)
    tasks: list[TaskText] = Field(min_length=1, max_length=MAX_TASKS_PER_AGENT)


class Agent(CamelModel):
    """A named configuration used to compose a single prompt.

    Stored agents are not re-validated against AgentCreate; rows written
    before those rules may carry blank tasks.
    """

    id: str = Field(default_factory=_new_id)
    name: str
    role: str
    goal: str
    backstory: str
    tasks: list[str] = Field(default_factory=list)
    order: int = Field(default=0, ge=0)


class AgentOrder(CamelModel):
    """New position for one agent in a reorder request."""

    id: str = Field(min_length=1, max_length=100)
    order: int = Field(ge=0)


class Execution(CamelModel):
    """One attempt to run an agent's tasks through the model.

    Attributes:
        id: Unique execution identifier
        agent_id: Originating agent (not a foreign key, agents may be deleted)
        agent_name: Agent name captured when the execution started
        status: running, completed or failed
        result: None while running, model output or error text afterwards
        created_at: Creation timestamp (UTC, immutable)
    """

    id: str = Field(default_factory=_new_id)
    agent_id: str
    agent_name: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    result: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class AgentTemplate(CamelModel):
    """Ready-made agent definition offered by the template library."""

    id: str
    name: str
    description: str
    category: str
    icon: str = ""
    agent: AgentCreate
