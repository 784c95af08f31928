"""Unit tests for the agentdeck CLI.

Every command runs against a database in a temporary project directory with
no Anthropic key configured, so executions fail with the missing-key message.
"""

import asyncio
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from agentdeck import __version__
from agentdeck.cli.main import app
from agentdeck.domain.models import Agent, Execution, ExecutionStatus
from agentdeck.infrastructure.database import Database
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Isolated project directory with no API key anywhere."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("AGENTDECK_DATABASE_PATH", str(tmp_path / "cli.db"))
    with patch("agentdeck.infrastructure.config.keyring.get_password", return_value=None):
        yield tmp_path


def _seed(db_path: Path, *records: Agent | Execution) -> None:
    async def _insert() -> None:
        db = Database(db_path)
        await db.initialize()
        for record in records:
            if isinstance(record, Agent):
                await db.insert_agent(record)
            else:
                await db.insert_execution(record)

    asyncio.run(_insert())


def _agent() -> Agent:
    return Agent(
        name="Researcher",
        role="Analyst",
        goal="Summarize",
        backstory="Consultant",
        tasks=["Collect sources"],
    )


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestAgentCommands:
    def test_list_shows_agents(self, project: Path) -> None:
        agent = _agent()
        _seed(project / "cli.db", agent)

        result = runner.invoke(app, ["agent", "list"])

        assert result.exit_code == 0
        assert "Researcher" in result.stdout

    def test_show_unknown_agent(self, project: Path) -> None:
        result = runner.invoke(app, ["agent", "show", "missing"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_execute_records_failure_without_key(self, project: Path) -> None:
        """Test that executing with no key ends in a failed record."""
        agent = _agent()
        _seed(project / "cli.db", agent)

        result = runner.invoke(app, ["agent", "execute", agent.id])

        assert result.exit_code == 0
        assert "failed" in result.stdout
        assert "ANTHROPIC_API_KEY is not configured" in result.stdout


class TestExecutionCommands:
    def test_show_unknown_execution(self, project: Path) -> None:
        result = runner.invoke(app, ["execution", "show", "missing"])

        assert result.exit_code == 1

    def test_show_execution(self, project: Path) -> None:
        execution = Execution(
            agent_id="a1",
            agent_name="Researcher",
            status=ExecutionStatus.COMPLETED,
            result="All done [really]",
        )
        _seed(project / "cli.db", execution)

        result = runner.invoke(app, ["execution", "show", execution.id])

        assert result.exit_code == 0
        assert "All done [really]" in result.stdout

    def test_list_rejects_bad_limit(self, project: Path) -> None:
        result = runner.invoke(app, ["execution", "list", "--limit", "0"])

        assert result.exit_code != 0

    def test_sweep_fails_stuck_records(self, project: Path) -> None:
        _seed(project / "cli.db", Execution(agent_id="a1", agent_name="Researcher"))

        result = runner.invoke(app, ["sweep", "--timeout-minutes", "0"])

        assert result.exit_code == 0
        assert "Cleaned up 1 stuck execution(s)" in result.stdout


def test_set_key_in_env_file(project: Path) -> None:
    result = runner.invoke(app, ["config", "set-key", "--api-key", "sk-ant-x", "--env-file"])

    assert result.exit_code == 0
    assert "ANTHROPIC_API_KEY=sk-ant-x" in (project / ".env").read_text()
