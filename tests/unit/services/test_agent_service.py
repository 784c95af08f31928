"""Unit tests for AgentService."""

from unittest.mock import AsyncMock

import pytest
from agentdeck.domain.models import AgentCreate, AgentOrder
from agentdeck.infrastructure.database import Database
from agentdeck.infrastructure.exceptions import AgentNotFoundError
from agentdeck.services.agent_service import AgentService


def _create(name: str = "Writer") -> AgentCreate:
    return AgentCreate(
        name=name,
        role="Content Writer",
        goal="Publish weekly",
        backstory="Ex-editor",
        tasks=["Outline", "Draft"],
    )


@pytest.fixture
def service(memory_db: Database) -> AgentService:
    return AgentService(memory_db)


class TestAgentService:
    """Test agent CRUD through the service layer."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, service: AgentService) -> None:
        first = await service.create_agent(_create("A"))
        second = await service.create_agent(_create("B"))

        agents = await service.list_agents()

        assert [a.id for a in agents] == [first.id, second.id]
        assert second.order == 1

    @pytest.mark.asyncio
    async def test_get_unknown_raises(self, service: AgentService) -> None:
        with pytest.raises(AgentNotFoundError):
            await service.get_agent("missing")

    @pytest.mark.asyncio
    async def test_update(self, service: AgentService) -> None:
        agent = await service.create_agent(_create())

        updated = await service.update_agent(agent.id, _create("Renamed"))

        assert updated.name == "Renamed"
        assert (await service.get_agent(agent.id)).name == "Renamed"

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self, service: AgentService) -> None:
        with pytest.raises(AgentNotFoundError):
            await service.update_agent("missing", _create())

    @pytest.mark.asyncio
    async def test_delete(self, service: AgentService) -> None:
        agent = await service.create_agent(_create())

        await service.delete_agent(agent.id)

        with pytest.raises(AgentNotFoundError):
            await service.get_agent(agent.id)
        with pytest.raises(AgentNotFoundError):
            await service.delete_agent(agent.id)

    @pytest.mark.asyncio
    async def test_reorder(self, service: AgentService) -> None:
        a = await service.create_agent(_create("A"))
        b = await service.create_agent(_create("B"))

        await service.reorder_agents([AgentOrder(id=b.id, order=0), AgentOrder(id=a.id, order=1)])

        assert [agent.name for agent in await service.list_agents()] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_reorder_failure_propagates(
        self, service: AgentService, memory_db: Database, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            memory_db, "reorder_agents", AsyncMock(side_effect=RuntimeError("locked"))
        )

        with pytest.raises(RuntimeError, match="locked"):
            await service.reorder_agents([AgentOrder(id="a", order=0)])
