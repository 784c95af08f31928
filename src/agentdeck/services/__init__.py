"""Service layer for agent management."""

from agentdeck.services.agent_service import AgentService

__all__ = ["AgentService"]
