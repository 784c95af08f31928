"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from agentdeck.domain.models import Agent
from agentdeck.infrastructure.database import Database


@pytest.fixture
async def memory_db() -> AsyncGenerator[Database, None]:
    """Create in-memory database for fast tests."""
    db = Database(Path(":memory:"))
    await db.initialize()
    yield db
    # Cleanup: close the shared connection for :memory: databases
    await db.close()


@pytest.fixture
async def file_db(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create file-based database for persistence tests."""
    db = Database(tmp_path / "agentdeck.db")
    await db.initialize()
    yield db


@pytest.fixture
def make_agent() -> Callable[..., Agent]:
    """Factory for agents with sensible defaults."""

    def _make(**overrides: object) -> Agent:
        fields: dict[str, object] = {
            "name": "Researcher",
            "role": "Analyst",
            "goal": "Summarize findings",
            "backstory": "Ten years of market research",
            "tasks": ["Collect sources", "Write summary"],
        }
        fields.update(overrides)
        return Agent(**fields)  # type: ignore[arg-type]

    return _make
