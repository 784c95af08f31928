"""agentdeck CLI - define agents and run their tasks through Claude."""

import asyncio
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from agentdeck import __version__

app = typer.Typer(
    name="agentdeck",
    help="Agent dashboard backend - define agents and run their tasks through Claude",
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {"running": "yellow", "completed": "green", "failed": "red"}


# ===== Version =====
@app.command()
def version() -> None:
    """Show agentdeck version."""
    console.print(f"[bold]agentdeck[/bold] version [cyan]{__version__}[/cyan]")


# ===== Helper Functions =====
async def _get_services() -> dict[str, Any]:
    """Get initialized services for one CLI invocation."""
    from agentdeck.api.app import build_services
    from agentdeck.infrastructure import ConfigManager, setup_logging

    config_manager = ConfigManager()
    config = config_manager.load_config()

    setup_logging(log_level=config.log_level, log_dir=config_manager.get_log_dir())

    services = build_services(config, config_manager)
    await services.database.initialize()

    return {
        "config": config,
        "database": services.database,
        "agent_service": services.agent_service,
        "execution_manager": services.execution_manager,
        "model_configured": services.model_configured,
    }


def _status_markup(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


# ===== Server =====
@app.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address (default from config)"),
    port: int | None = typer.Option(None, help="Port (default from config)"),
) -> None:
    """Run the HTTP API server."""
    import uvicorn

    from agentdeck.api.app import create_app
    from agentdeck.infrastructure import ConfigManager, setup_logging

    config_manager = ConfigManager()
    config = config_manager.load_config()
    setup_logging(log_level=config.log_level, log_dir=config_manager.get_log_dir())

    api = create_app(config)
    uvicorn.run(
        api,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.log_level.lower(),
    )


@app.command()
def sweep(
    timeout_minutes: float | None = typer.Option(
        None,
        "--timeout-minutes",
        help="Fail running executions older than this (default from config)",
    ),
) -> None:
    """Fail executions stuck in the running state."""

    async def _sweep() -> None:
        services = await _get_services()
        minutes = (
            timeout_minutes
            if timeout_minutes is not None
            else services["config"].execution.stuck_timeout_minutes
        )
        count = await services["execution_manager"].sweep_stuck_executions(minutes)
        console.print(f"[green]✓[/green] Cleaned up {count} stuck execution(s)")

    asyncio.run(_sweep())


# ===== Agent Commands =====
agent_app = typer.Typer(help="Agent management", no_args_is_help=True)
app.add_typer(agent_app, name="agent")


@agent_app.command("list")
def agent_list() -> None:
    """List agents in display order."""

    async def _list() -> None:
        services = await _get_services()
        agents = await services["agent_service"].list_agents()

        table = Table(title="Agents")
        table.add_column("#", justify="right")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Name", style="magenta")
        table.add_column("Role", style="green")
        table.add_column("Tasks", justify="center")

        for agent in agents:
            table.add_row(
                str(agent.order),
                agent.id,
                agent.name,
                agent.role,
                str(len(agent.tasks)),
            )

        console.print(table)

    asyncio.run(_list())


@agent_app.command("show")
def agent_show(agent_id: str = typer.Argument(..., help="Agent ID")) -> None:
    """Show an agent's full definition."""
    from agentdeck.infrastructure.exceptions import AgentNotFoundError

    async def _show() -> None:
        services = await _get_services()
        try:
            agent = await services["agent_service"].get_agent(agent_id)
        except AgentNotFoundError:
            console.print(f"[red]Error:[/red] Agent {agent_id} not found")
            raise typer.Exit(1) from None

        console.print(f"[bold]{agent.name}[/bold] ({agent.id})")
        console.print(f"Role: [green]{agent.role}[/green]")
        console.print(f"Goal: {agent.goal}")
        console.print(f"Backstory: {agent.backstory}")
        console.print("\n[dim]Tasks:[/dim]")
        for index, task in enumerate(agent.tasks, start=1):
            console.print(f"  {index}. {task}")

    asyncio.run(_show())


@agent_app.command("execute")
def agent_execute(agent_id: str = typer.Argument(..., help="Agent ID")) -> None:
    """Execute an agent's tasks and wait for the result."""
    from agentdeck.infrastructure.exceptions import AgentNotFoundError, NoValidTasksError

    async def _execute() -> None:
        services = await _get_services()
        manager = services["execution_manager"]
        try:
            agent = await services["agent_service"].get_agent(agent_id)
            execution = await manager.start_execution(agent)
        except (AgentNotFoundError, NoValidTasksError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None

        console.print(f"[blue]Execution {execution.id} started[/blue]")
        with console.status("Waiting for the model..."):
            await manager.wait_for_execution(execution.id)

        finished = await services["database"].get_execution(execution.id)
        if finished is None:
            console.print(f"[red]Error:[/red] Execution {execution.id} disappeared")
            raise typer.Exit(1)

        console.print(f"Status: {_status_markup(finished.status.value)}")
        if finished.result:
            console.print(finished.result, markup=False)

    asyncio.run(_execute())


# ===== Execution Commands =====
execution_app = typer.Typer(help="Execution history", no_args_is_help=True)
app.add_typer(execution_app, name="execution")


@execution_app.command("list")
def execution_list(
    limit: int = typer.Option(20, min=1, max=1000, help="Maximum number of executions"),
) -> None:
    """List recent executions, newest first."""

    async def _list() -> None:
        services = await _get_services()
        executions = await services["database"].list_executions(limit)

        table = Table(title="Executions")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Agent", style="magenta")
        table.add_column("Status")
        table.add_column("Created", style="blue")
        table.add_column("Result")

        for execution in executions:
            preview = execution.result or "-"
            if len(preview) > 50:
                preview = preview[:50] + "..."
            table.add_row(
                execution.id,
                execution.agent_name,
                _status_markup(execution.status.value),
                execution.created_at.strftime("%Y-%m-%d %H:%M"),
                preview.replace("\n", " "),
            )

        console.print(table)

    asyncio.run(_list())


@execution_app.command("show")
def execution_show(execution_id: str = typer.Argument(..., help="Execution ID")) -> None:
    """Show an execution and its full result."""

    async def _show() -> None:
        services = await _get_services()
        execution = await services["database"].get_execution(execution_id)
        if execution is None:
            console.print(f"[red]Error:[/red] Execution {execution_id} not found")
            raise typer.Exit(1)

        console.print(f"[bold]Execution {execution.id}[/bold]")
        console.print(f"Agent: [magenta]{execution.agent_name}[/magenta] ({execution.agent_id})")
        console.print(f"Status: {_status_markup(execution.status.value)}")
        console.print(f"Created: {execution.created_at}")
        if execution.result:
            console.print("\n[dim]Result:[/dim]")
            console.print(execution.result, markup=False)

    asyncio.run(_show())


# ===== Config Commands =====
config_app = typer.Typer(help="Configuration management", no_args_is_help=True)
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    import yaml

    from agentdeck.infrastructure import ConfigManager

    config = ConfigManager().load_config()
    console.print(yaml.safe_dump(config.model_dump(), sort_keys=False))


@config_app.command("set-key")
def config_set_key(
    api_key: str = typer.Option(..., prompt=True, hide_input=True, help="Anthropic API key"),
    use_env_file: bool = typer.Option(
        False, "--env-file", help="Store in .env instead of the system keychain"
    ),
) -> None:
    """Store the Anthropic API key."""
    from agentdeck.infrastructure import ConfigManager

    config_manager = ConfigManager(Path.cwd())
    config_manager.set_api_key(api_key, use_keychain=not use_env_file)
    where = ".env" if use_env_file else "system keychain"
    console.print(f"[green]✓[/green] API key stored in {where}")


# ===== Main Entry Point =====
def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
