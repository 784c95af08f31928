"""Ports implemented by infrastructure adapters."""

from agentdeck.domain.ports.model_invoker import ModelInvoker

__all__ = ["ModelInvoker"]
