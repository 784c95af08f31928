"""Database infrastructure using SQLite with WAL mode."""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiosqlite
from aiosqlite import Connection

from agentdeck.domain.models import (
    Agent,
    AgentCreate,
    AgentOrder,
    Execution,
    ExecutionStatus,
)
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

STUCK_EXECUTION_MESSAGE = (
    "Execution timed out after {minutes} minutes and was automatically cleaned up"
)


def _format_timestamp(value: datetime) -> str:
    # Fixed-width UTC text keeps lexical and chronological order identical
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _format_minutes(minutes: float) -> str:
    return str(int(minutes)) if float(minutes).is_integer() else str(minutes)


class Database:
    """SQLite database holding agents and execution records."""

    def __init__(self, db_path: Path) -> None:
        """Initialize database.

        Args:
            db_path: Path to SQLite database file, or ``Path(":memory:")``
        """
        self.db_path = db_path
        self._initialized = False
        self._shared_conn: Connection | None = None  # For :memory: databases

    async def initialize(self) -> None:
        """Initialize database schema and settings."""
        if self._initialized:
            return

        if not self._is_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._get_connection() as conn:
            if not self._is_memory:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")
            await conn.execute("PRAGMA busy_timeout=5000")

            await self._create_tables(conn)
            await conn.commit()

        self._initialized = True

    async def close(self) -> None:
        """Close the database connection.

        Only needed for :memory: databases to clean up the shared connection.
        File-based databases close connections automatically.
        """
        if self._shared_conn is not None:
            await self._shared_conn.close()
            self._shared_conn = None
            self._initialized = False

    @property
    def _is_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[Connection]:
        """Get database connection with proper settings.

        For :memory: databases, maintains a shared connection to preserve data
        across multiple operations. For file databases, creates a new connection
        each time.
        """
        if self._is_memory:
            if self._shared_conn is None:
                self._shared_conn = await aiosqlite.connect(":memory:")
                self._shared_conn.row_factory = aiosqlite.Row
            yield self._shared_conn
        else:
            async with aiosqlite.connect(str(self.db_path)) as conn:
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA busy_timeout=5000")
                yield conn

    async def _create_tables(self, conn: Connection) -> None:
        """Create agent and execution tables."""
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                role TEXT NOT NULL,
                goal TEXT NOT NULL,
                backstory TEXT NOT NULL,
                tasks TEXT NOT NULL DEFAULT '[]',
                sort_order INTEGER NOT NULL DEFAULT 0
            )
            """
        )

        # agent_id is not a foreign key; executions outlive their agent
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                agent_name TEXT NOT NULL,
                status TEXT NOT NULL,
                result TEXT,
                created_at TIMESTAMP NOT NULL
            )
            """
        )

        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_agents_sort_order ON agents(sort_order)"
        )
        await conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_executions_status_created
            ON executions(status, created_at)
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_executions_created ON executions(created_at DESC)"
        )

    async def check_health(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            async with self._get_connection() as conn:
                cursor = await conn.execute("SELECT 1")
                row = await cursor.fetchone()
                return row is not None
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False

    # Agent operations
    async def list_agents(self) -> list[Agent]:
        """List all agents ordered by their position."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM agents ORDER BY sort_order ASC, rowid ASC"
            )
            rows = await cursor.fetchall()
            return [self._row_to_agent(row) for row in rows]

    async def get_agent(self, agent_id: str) -> Agent | None:
        """Get agent by ID."""
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,))
            row = await cursor.fetchone()
            if row:
                return self._row_to_agent(row)
            return None

    async def insert_agent(self, agent: Agent) -> Agent:
        """Insert a new agent at the end of the current ordering.

        The supplied ``order`` is ignored; new agents take position
        ``count(agents)``.

        Returns:
            The stored agent with its assigned order
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM agents")
            row = await cursor.fetchone()
            position = row[0] if row else 0

            await conn.execute(
                """
                INSERT INTO agents (id, name, role, goal, backstory, tasks, sort_order)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    agent.id,
                    agent.name,
                    agent.role,
                    agent.goal,
                    agent.backstory,
                    json.dumps(agent.tasks),
                    position,
                ),
            )
            await conn.commit()

        return agent.model_copy(update={"order": position})

    async def update_agent(self, agent_id: str, data: AgentCreate) -> Agent | None:
        """Replace an agent's fields, leaving its order untouched.

        Returns:
            Updated agent, or None if no agent has that id
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE agents
                SET name = ?, role = ?, goal = ?, backstory = ?, tasks = ?
                WHERE id = ?
                """,
                (
                    data.name,
                    data.role,
                    data.goal,
                    data.backstory,
                    json.dumps(data.tasks),
                    agent_id,
                ),
            )
            await conn.commit()
            if cursor.rowcount == 0:
                return None

        return await self.get_agent(agent_id)

    async def delete_agent(self, agent_id: str) -> bool:
        """Delete an agent and close the gap it leaves in the ordering.

        Execution records referencing the agent are kept.

        Returns:
            True if the agent was deleted, False if not found
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                await self._normalize_agent_order(conn)
            await conn.commit()
            return deleted

    async def reorder_agents(self, orders: list[AgentOrder]) -> None:
        """Apply new positions in a single transaction.

        Unknown ids are ignored. After the updates the ordering is rewritten
        to a contiguous zero-based sequence, so duplicates or gaps in the
        request are resolved by (requested order, previous position).

        Args:
            orders: New positions keyed by agent id

        Raises:
            aiosqlite.Error: If any update fails; no change is kept
        """
        async with self._get_connection() as conn:
            await conn.execute("BEGIN TRANSACTION")
            try:
                await conn.executemany(
                    "UPDATE agents SET sort_order = ? WHERE id = ?",
                    [(item.order, item.id) for item in orders],
                )
                await self._normalize_agent_order(conn)
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def _normalize_agent_order(self, conn: Connection) -> None:
        cursor = await conn.execute("SELECT id FROM agents ORDER BY sort_order ASC, rowid ASC")
        rows = await cursor.fetchall()
        await conn.executemany(
            "UPDATE agents SET sort_order = ? WHERE id = ?",
            [(position, row["id"]) for position, row in enumerate(rows)],
        )

    def _row_to_agent(self, row: aiosqlite.Row) -> Agent:
        """Convert database row to Agent model."""
        row_dict = dict(row)
        return Agent(
            id=row_dict["id"],
            name=row_dict["name"],
            role=row_dict["role"],
            goal=row_dict["goal"],
            backstory=row_dict["backstory"],
            tasks=json.loads(row_dict["tasks"]) if row_dict.get("tasks") else [],
            order=row_dict["sort_order"],
        )

    # Execution operations
    async def insert_execution(self, execution: Execution) -> None:
        """Insert a new execution record."""
        async with self._get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO executions (id, agent_id, agent_name, status, result, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    execution.id,
                    execution.agent_id,
                    execution.agent_name,
                    execution.status.value,
                    execution.result,
                    _format_timestamp(execution.created_at),
                ),
            )
            await conn.commit()

    async def get_execution(self, execution_id: str) -> Execution | None:
        """Get execution by ID."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM executions WHERE id = ?", (execution_id,)
            )
            row = await cursor.fetchone()
            if row:
                return self._row_to_execution(row)
            return None

    async def list_executions(self, limit: int | None = None) -> list[Execution]:
        """List executions, newest first.

        Args:
            limit: Maximum number of records (None for all)
        """
        query = "SELECT * FROM executions ORDER BY created_at DESC, rowid DESC"
        params: tuple[int, ...] = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_execution(row) for row in rows]

    async def update_execution(
        self, execution_id: str, status: ExecutionStatus, result: str | None
    ) -> Execution | None:
        """Move a running execution to a terminal status.

        Only records still marked running are touched, so a record that was
        already swept or finished keeps its first terminal outcome.

        Returns:
            Updated execution, or None if no running record has that id
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "UPDATE executions SET status = ?, result = ? WHERE id = ? AND status = ?",
                (status.value, result, execution_id, ExecutionStatus.RUNNING.value),
            )
            await conn.commit()
            if cursor.rowcount == 0:
                return None

        return await self.get_execution(execution_id)

    async def cleanup_stuck_executions(self, timeout_minutes: float) -> int:
        """Force-fail running executions created before ``now - timeout_minutes``.

        Args:
            timeout_minutes: Age threshold; 0 selects every running record

        Returns:
            Number of records updated
        """
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=timeout_minutes)
        message = STUCK_EXECUTION_MESSAGE.format(minutes=_format_minutes(timeout_minutes))

        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                UPDATE executions
                SET status = ?, result = ?
                WHERE status = ?
                AND julianday(created_at) < julianday(?)
                """,
                (
                    ExecutionStatus.FAILED.value,
                    message,
                    ExecutionStatus.RUNNING.value,
                    _format_timestamp(cutoff),
                ),
            )
            await conn.commit()
            return cursor.rowcount

    def _row_to_execution(self, row: aiosqlite.Row) -> Execution:
        """Convert database row to Execution model."""
        row_dict = dict(row)
        created_at = datetime.fromisoformat(row_dict["created_at"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return Execution(
            id=row_dict["id"],
            agent_id=row_dict["agent_id"],
            agent_name=row_dict["agent_name"],
            status=ExecutionStatus(row_dict["status"]),
            result=row_dict["result"],
            created_at=created_at,
        )
