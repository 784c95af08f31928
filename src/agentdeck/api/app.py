"""FastAPI application factory.

``create_app()`` builds the services, wires middleware, routers and error
handlers, and ties the database and sweeper to the application lifespan.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentdeck import __version__
from agentdeck.api.deps import AppServices
from agentdeck.api.middleware.errors import (
    agentdeck_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from agentdeck.api.middleware.rate_limit import RateLimitMiddleware
from agentdeck.api.middleware.request_logging import RequestLoggingMiddleware
from agentdeck.api.routers import agents, executions, health, templates
from agentdeck.application.claude_client import ClaudeClient, UnconfiguredClient
from agentdeck.application.execution_manager import ExecutionManager
from agentdeck.application.execution_tracker import ExecutionTracker
from agentdeck.application.stuck_execution_sweeper import StuckExecutionSweeper
from agentdeck.application.template_library import TemplateLibrary
from agentdeck.domain.ports.model_invoker import ModelInvoker
from agentdeck.infrastructure.config import Config, ConfigManager
from agentdeck.infrastructure.database import Database
from agentdeck.infrastructure.exceptions import AgentDeckError, APIKeyInvalidError
from agentdeck.infrastructure.logger import get_logger
from agentdeck.services.agent_service import AgentService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: database, sweeper, and in-flight executions."""
    services: AppServices = app.state.services

    logger.info("agentdeck_api_starting", version=__version__)
    await services.database.initialize()
    await services.sweeper.start()

    yield

    logger.info("agentdeck_api_shutting_down")
    await services.sweeper.stop()
    await services.execution_manager.shutdown()
    await services.database.close()


def build_invoker(config: Config, config_manager: ConfigManager) -> tuple[ModelInvoker, bool]:
    """Create the Claude client, or a failing stand-in when no key is set.

    Returns:
        Tuple of (invoker, whether a key was found)
    """
    try:
        api_key = config_manager.get_api_key()
        client = ClaudeClient(
            api_key=api_key,
            model=config.model.name,
            max_tokens=config.model.max_tokens,
            temperature=config.model.temperature,
            max_retries=config.model.max_retries,
            timeout=config.model.request_timeout_seconds,
        )
        return client, True
    except (ValueError, APIKeyInvalidError) as e:
        logger.warning("model_api_key_missing", error=str(e).splitlines()[0])
        return UnconfiguredClient("ANTHROPIC_API_KEY is not configured"), False


def build_services(
    config: Config,
    config_manager: ConfigManager,
    invoker: ModelInvoker | None = None,
    database: Database | None = None,
) -> AppServices:
    """Assemble the application's service graph from configuration."""
    if database is None:
        database = Database(config_manager.get_database_path())

    if invoker is None:
        invoker, model_configured = build_invoker(config, config_manager)
    else:
        model_configured = True

    manager = ExecutionManager(
        database=database,
        invoker=invoker,
        tracker=ExecutionTracker(max_concurrent=config.execution.max_concurrent_executions),
        timeout_ms=config.execution.timeout_ms,
        enforce_concurrency_limit=config.execution.enforce_concurrency_limit,
    )
    sweeper = StuckExecutionSweeper(
        manager,
        interval_minutes=config.execution.sweep_interval_minutes,
        stuck_timeout_minutes=config.execution.stuck_timeout_minutes,
    )

    return AppServices(
        config=config,
        database=database,
        agent_service=AgentService(database),
        execution_manager=manager,
        sweeper=sweeper,
        templates=TemplateLibrary(),
        model_configured=model_configured,
    )


def create_app(
    config: Config | None = None,
    *,
    project_root: Path | None = None,
    invoker: ModelInvoker | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Args:
        config: Override configuration (loaded from the project when None)
        project_root: Root used for config files, the database path and .env
        invoker: Override model invoker (useful for testing)
        database: Override database (useful for testing)
    """
    config_manager = ConfigManager(project_root, config=config)
    config = config_manager.load_config()

    services = build_services(config, config_manager, invoker=invoker, database=database)
    prefix = config.server.api_prefix

    app = FastAPI(
        title="agentdeck",
        version=__version__,
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        openapi_url=f"{prefix}/openapi.json",
    )
    app.state.config = config
    app.state.services = services

    rate_limit = config.security.rate_limit
    app.add_middleware(
        RateLimitMiddleware,
        api_prefix=prefix,
        enabled=rate_limit.enabled,
        window_seconds=rate_limit.window_seconds,
        max_requests=rate_limit.max_requests,
    )
    app.add_middleware(RequestLoggingMiddleware, api_prefix=prefix)
    app.add_middleware(GZipMiddleware, minimum_size=config.server.gzip_minimum_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AgentDeckError, agentdeck_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(agents.router, prefix=prefix, tags=["agents"])
    app.include_router(executions.router, prefix=prefix, tags=["executions"])
    app.include_router(templates.router, prefix=prefix, tags=["templates"])

    return app
