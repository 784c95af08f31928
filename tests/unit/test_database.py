"""Unit tests for the SQLite agent and execution store."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from agentdeck.domain.models import AgentCreate, AgentOrder, Execution, ExecutionStatus
from agentdeck.infrastructure.database import Database


def _execution(agent_id: str = "agent-1", minutes_ago: float = 0.0, **fields: object) -> Execution:
    created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return Execution(agent_id=agent_id, agent_name="Researcher", created_at=created_at, **fields)


class TestAgentStore:
    """Agent CRUD and ordering."""

    @pytest.mark.asyncio
    async def test_insert_assigns_next_order(self, memory_db: Database, make_agent) -> None:
        first = await memory_db.insert_agent(make_agent(name="A", order=7))
        second = await memory_db.insert_agent(make_agent(name="B"))

        assert first.order == 0
        assert second.order == 1

    @pytest.mark.asyncio
    async def test_get_agent_round_trips_tasks(self, memory_db: Database, make_agent) -> None:
        agent = await memory_db.insert_agent(make_agent(tasks=["one", "two", "three"]))

        loaded = await memory_db.get_agent(agent.id)

        assert loaded is not None
        assert loaded.tasks == ["one", "two", "three"]
        assert loaded.name == agent.name

    @pytest.mark.asyncio
    async def test_get_missing_agent_returns_none(self, memory_db: Database) -> None:
        assert await memory_db.get_agent("nope") is None

    @pytest.mark.asyncio
    async def test_update_keeps_order(self, memory_db: Database, make_agent) -> None:
        await memory_db.insert_agent(make_agent(name="A"))
        agent = await memory_db.insert_agent(make_agent(name="B"))

        updated = await memory_db.update_agent(
            agent.id,
            AgentCreate(name="B2", role="r", goal="g", backstory="b", tasks=["t"]),
        )

        assert updated is not None
        assert updated.name == "B2"
        assert updated.tasks == ["t"]
        assert updated.order == 1

    @pytest.mark.asyncio
    async def test_update_missing_agent_returns_none(self, memory_db: Database) -> None:
        data = AgentCreate(name="x", role="r", goal="g", backstory="b", tasks=["t"])
        assert await memory_db.update_agent("missing", data) is None

    @pytest.mark.asyncio
    async def test_delete_redensifies_order(self, memory_db: Database, make_agent) -> None:
        a = await memory_db.insert_agent(make_agent(name="A"))
        b = await memory_db.insert_agent(make_agent(name="B"))
        c = await memory_db.insert_agent(make_agent(name="C"))

        assert await memory_db.delete_agent(b.id) is True

        agents = await memory_db.list_agents()
        assert [agent.id for agent in agents] == [a.id, c.id]
        assert [agent.order for agent in agents] == [0, 1]

    @pytest.mark.asyncio
    async def test_delete_missing_agent(self, memory_db: Database) -> None:
        assert await memory_db.delete_agent("missing") is False

    @pytest.mark.asyncio
    async def test_delete_keeps_executions(self, memory_db: Database, make_agent) -> None:
        agent = await memory_db.insert_agent(make_agent())
        execution = _execution(agent_id=agent.id)
        await memory_db.insert_execution(execution)

        await memory_db.delete_agent(agent.id)

        assert await memory_db.get_execution(execution.id) is not None

    @pytest.mark.asyncio
    async def test_reorder_applies_new_positions(self, memory_db: Database, make_agent) -> None:
        a = await memory_db.insert_agent(make_agent(name="A"))
        b = await memory_db.insert_agent(make_agent(name="B"))
        c = await memory_db.insert_agent(make_agent(name="C"))

        await memory_db.reorder_agents(
            [
                AgentOrder(id=c.id, order=0),
                AgentOrder(id=a.id, order=1),
                AgentOrder(id=b.id, order=2),
            ]
        )

        agents = await memory_db.list_agents()
        assert [agent.name for agent in agents] == ["C", "A", "B"]
        assert [agent.order for agent in agents] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_reorder_closes_gaps(self, memory_db: Database, make_agent) -> None:
        a = await memory_db.insert_agent(make_agent(name="A"))
        b = await memory_db.insert_agent(make_agent(name="B"))

        await memory_db.reorder_agents(
            [AgentOrder(id=a.id, order=10), AgentOrder(id=b.id, order=4)]
        )

        agents = await memory_db.list_agents()
        assert [agent.name for agent in agents] == ["B", "A"]
        assert [agent.order for agent in agents] == [0, 1]

    @pytest.mark.asyncio
    async def test_reorder_ignores_unknown_ids(self, memory_db: Database, make_agent) -> None:
        a = await memory_db.insert_agent(make_agent(name="A"))

        await memory_db.reorder_agents(
            [AgentOrder(id="ghost", order=0), AgentOrder(id=a.id, order=3)]
        )

        agents = await memory_db.list_agents()
        assert [(agent.id, agent.order) for agent in agents] == [(a.id, 0)]

    @pytest.mark.asyncio
    async def test_reorder_rolls_back_on_failure(
        self, memory_db: Database, make_agent, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        a = await memory_db.insert_agent(make_agent(name="A"))
        b = await memory_db.insert_agent(make_agent(name="B"))
        monkeypatch.setattr(
            memory_db, "_normalize_agent_order", AsyncMock(side_effect=RuntimeError("boom"))
        )

        with pytest.raises(RuntimeError, match="boom"):
            await memory_db.reorder_agents(
                [AgentOrder(id=b.id, order=0), AgentOrder(id=a.id, order=1)]
            )

        agents = await memory_db.list_agents()
        assert [(agent.name, agent.order) for agent in agents] == [("A", 0), ("B", 1)]

    @pytest.mark.asyncio
    async def test_agents_survive_reconnect(self, file_db: Database, make_agent) -> None:
        agent = await file_db.insert_agent(make_agent())

        reopened = Database(file_db.db_path)
        await reopened.initialize()

        assert await reopened.get_agent(agent.id) is not None


class TestExecutionStore:
    """Execution records, listing, and the stuck sweep."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, memory_db: Database) -> None:
        execution = _execution()
        await memory_db.insert_execution(execution)

        loaded = await memory_db.get_execution(execution.id)

        assert loaded is not None
        assert loaded.status == ExecutionStatus.RUNNING
        assert loaded.result is None
        assert loaded.agent_name == "Researcher"
        assert loaded.created_at == execution.created_at

    @pytest.mark.asyncio
    async def test_list_newest_first(self, memory_db: Database) -> None:
        old = _execution(minutes_ago=30)
        middle = _execution(minutes_ago=10)
        new = _execution(minutes_ago=1)
        for execution in (middle, new, old):
            await memory_db.insert_execution(execution)

        listed = await memory_db.list_executions()

        assert [e.id for e in listed] == [new.id, middle.id, old.id]

    @pytest.mark.asyncio
    async def test_list_respects_limit(self, memory_db: Database) -> None:
        for minutes in range(5):
            await memory_db.insert_execution(_execution(minutes_ago=minutes))

        listed = await memory_db.list_executions(limit=2)

        assert len(listed) == 2
        assert listed[0].created_at > listed[1].created_at

    @pytest.mark.asyncio
    async def test_update_execution(self, memory_db: Database) -> None:
        execution = _execution()
        await memory_db.insert_execution(execution)

        updated = await memory_db.update_execution(
            execution.id, ExecutionStatus.COMPLETED, "done"
        )

        assert updated is not None
        assert updated.status == ExecutionStatus.COMPLETED
        assert updated.result == "done"

    @pytest.mark.asyncio
    async def test_update_missing_execution(self, memory_db: Database) -> None:
        assert await memory_db.update_execution("missing", ExecutionStatus.FAILED, "x") is None

    @pytest.mark.asyncio
    async def test_update_leaves_terminal_record_alone(self, memory_db: Database) -> None:
        execution = _execution()
        await memory_db.insert_execution(execution)
        await memory_db.update_execution(execution.id, ExecutionStatus.COMPLETED, "first")

        second = await memory_db.update_execution(execution.id, ExecutionStatus.FAILED, "second")

        assert second is None
        stored = await memory_db.get_execution(execution.id)
        assert stored is not None
        assert stored.status == ExecutionStatus.COMPLETED
        assert stored.result == "first"

    @pytest.mark.asyncio
    async def test_cleanup_only_touches_old_running(self, memory_db: Database) -> None:
        stale = _execution(minutes_ago=15)
        fresh = _execution(minutes_ago=5)
        finished = _execution(
            minutes_ago=60, status=ExecutionStatus.COMPLETED, result="ok"
        )
        for execution in (stale, fresh, finished):
            await memory_db.insert_execution(execution)

        count = await memory_db.cleanup_stuck_executions(10)

        assert count == 1
        swept = await memory_db.get_execution(stale.id)
        assert swept is not None
        assert swept.status == ExecutionStatus.FAILED
        assert swept.result == (
            "Execution timed out after 10 minutes and was automatically cleaned up"
        )
        untouched = await memory_db.get_execution(fresh.id)
        assert untouched is not None and untouched.status == ExecutionStatus.RUNNING
        done = await memory_db.get_execution(finished.id)
        assert done is not None and done.result == "ok"

    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, memory_db: Database) -> None:
        await memory_db.insert_execution(_execution(minutes_ago=15))

        assert await memory_db.cleanup_stuck_executions(10) == 1
        assert await memory_db.cleanup_stuck_executions(10) == 0

    @pytest.mark.asyncio
    async def test_cleanup_with_zero_minutes_takes_all_running(self, memory_db: Database) -> None:
        await memory_db.insert_execution(_execution(minutes_ago=0.01))
        await memory_db.insert_execution(_execution(minutes_ago=3))

        assert await memory_db.cleanup_stuck_executions(0) == 2

    @pytest.mark.asyncio
    async def test_check_health(self, memory_db: Database) -> None:
        assert await memory_db.check_health() is True
