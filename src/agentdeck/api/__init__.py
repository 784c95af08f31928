"""HTTP API for the agentdeck dashboard."""

from agentdeck.api.app import create_app

__all__ = ["create_app"]
