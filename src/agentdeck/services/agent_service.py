"""Agent management service."""

from typing import TYPE_CHECKING

from agentdeck.domain.models import Agent, AgentCreate, AgentOrder
from agentdeck.infrastructure.exceptions import AgentNotFoundError
from agentdeck.infrastructure.logger import get_logger

if TYPE_CHECKING:
    from agentdeck.infrastructure.database import Database

logger = get_logger(__name__)


class AgentService:
    """CRUD and ordering for agents.

    Lookups of unknown ids raise AgentNotFoundError so callers can map the
    failure to a 404 without checking for None.
    """

    def __init__(self, db: "Database") -> None:
        """Initialize agent service.

        Args:
            db: Database instance for storage operations
        """
        self.db = db

    async def list_agents(self) -> list[Agent]:
        return await self.db.list_agents()

    async def get_agent(self, agent_id: str) -> Agent:
        """Get an agent by id.

        Raises:
            AgentNotFoundError: If no agent has that id
        """
        agent = await self.db.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def create_agent(self, data: AgentCreate) -> Agent:
        """Create an agent positioned after all existing agents."""
        agent = await self.db.insert_agent(Agent(**data.model_dump()))
        logger.info("agent_created", agent_id=agent.id, name=agent.name, order=agent.order)
        return agent

    async def update_agent(self, agent_id: str, data: AgentCreate) -> Agent:
        """Replace an agent's fields.

        Raises:
            AgentNotFoundError: If no agent has that id
        """
        agent = await self.db.update_agent(agent_id, data)
        if agent is None:
            logger.warning("agent_not_found_for_update", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)
        logger.info("agent_updated", agent_id=agent_id)
        return agent

    async def delete_agent(self, agent_id: str) -> None:
        """Delete an agent; its execution history is kept.

        Raises:
            AgentNotFoundError: If no agent has that id
        """
        if not await self.db.delete_agent(agent_id):
            logger.warning("agent_not_found_for_deletion", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)
        logger.info("agent_deleted", agent_id=agent_id)

    async def reorder_agents(self, orders: list[AgentOrder]) -> None:
        """Apply a new ordering atomically."""
        try:
            await self.db.reorder_agents(orders)
        except Exception as e:
            logger.error("agent_reorder_failed", count=len(orders), error=str(e))
            raise
        logger.info("agents_reordered", count=len(orders))
