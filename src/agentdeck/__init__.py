"""agentdeck - define agents and dispatch their tasks to Claude."""

__version__ = "0.1.0"
