"""Application services for agentdeck."""

from agentdeck.application.claude_client import ClaudeClient, UnconfiguredClient
from agentdeck.application.execution_manager import ExecutionManager
from agentdeck.application.execution_tracker import ExecutionTracker
from agentdeck.application.stuck_execution_sweeper import StuckExecutionSweeper
from agentdeck.application.template_library import TemplateLibrary

__all__ = [
    "ClaudeClient",
    "ExecutionManager",
    "ExecutionTracker",
    "StuckExecutionSweeper",
    "TemplateLibrary",
    "UnconfiguredClient",
]
