"""FastAPI dependency injection for the services built by create_app."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from agentdeck.application.execution_manager import ExecutionManager
from agentdeck.application.stuck_execution_sweeper import StuckExecutionSweeper
from agentdeck.application.template_library import TemplateLibrary
from agentdeck.infrastructure.config import Config
from agentdeck.infrastructure.database import Database
from agentdeck.services.agent_service import AgentService


@dataclass
class AppServices:
    """Singletons shared by every request of one application instance."""

    config: Config
    database: Database
    agent_service: AgentService
    execution_manager: ExecutionManager
    sweeper: StuckExecutionSweeper
    templates: TemplateLibrary
    model_configured: bool


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_agent_service(services: Annotated[AppServices, Depends(get_services)]) -> AgentService:
    return services.agent_service


def get_execution_manager(
    services: Annotated[AppServices, Depends(get_services)],
) -> ExecutionManager:
    return services.execution_manager


def get_database(services: Annotated[AppServices, Depends(get_services)]) -> Database:
    return services.database


def get_templates(services: Annotated[AppServices, Depends(get_services)]) -> TemplateLibrary:
    return services.templates


Services = Annotated[AppServices, Depends(get_services)]
Agents = Annotated[AgentService, Depends(get_agent_service)]
Executions = Annotated[ExecutionManager, Depends(get_execution_manager)]
Store = Annotated[Database, Depends(get_database)]
Templates = Annotated[TemplateLibrary, Depends(get_templates)]
