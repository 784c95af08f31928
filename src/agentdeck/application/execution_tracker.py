"""In-memory bookkeeping of executions running in this process."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TrackedExecution:
    """A background execution task and when it was registered."""

    execution_id: str
    task: asyncio.Task[None]
    started_at: datetime
    settled: bool = False
    cancel_requested: bool = False


class ExecutionTracker:
    """Tracks in-flight background executions.

    The counter is advisory: nothing here blocks an execution from starting.
    State is never persisted and is lost on restart.
    """

    def __init__(self, max_concurrent: int = 5):
        """Initialize tracker.

        Args:
            max_concurrent: Capacity reported by can_start_execution
        """
        self.max_concurrent = max_concurrent
        self._executions: dict[str, TrackedExecution] = {}

    @property
    def active_count(self) -> int:
        return len(self._executions)

    def register(self, execution_id: str, task: asyncio.Task[None]) -> None:
        """Start tracking a background task.

        Holding the task here also keeps it from being garbage-collected
        before it finishes.
        """
        self._executions[execution_id] = TrackedExecution(
            execution_id=execution_id,
            task=task,
            started_at=datetime.now(timezone.utc),
        )
        logger.debug("execution_registered", execution_id=execution_id, active=self.active_count)

    def unregister(self, execution_id: str) -> None:
        """Stop tracking an execution; unknown ids are ignored."""
        if self._executions.pop(execution_id, None) is not None:
            logger.debug(
                "execution_unregistered", execution_id=execution_id, active=self.active_count
            )

    def mark_settled(self, execution_id: str) -> None:
        """Record that the model call has an outcome and only the final write remains."""
        tracked = self._executions.get(execution_id)
        if tracked is not None:
            tracked.settled = True

    def is_running(self, execution_id: str) -> bool:
        return execution_id in self._executions

    def get_task(self, execution_id: str) -> asyncio.Task[None] | None:
        tracked = self._executions.get(execution_id)
        return tracked.task if tracked else None

    def cancel(self, execution_id: str) -> bool:
        """Cancel a tracked execution's task.

        The entry stays tracked until the task itself unregisters it.

        Returns:
            True if a cancellation was issued, False if the id is not in
            flight, its outcome is already settled, or it was cancelled before
        """
        tracked = self._executions.get(execution_id)
        if tracked is None or tracked.task.done() or tracked.settled or tracked.cancel_requested:
            return False

        tracked.cancel_requested = True
        tracked.task.cancel()
        logger.info("execution_cancel_requested", execution_id=execution_id)
        return True

    def can_start_execution(self) -> bool:
        return self.active_count < self.max_concurrent

    def execution_ids(self) -> list[str]:
        return list(self._executions)

    def tasks(self) -> list[asyncio.Task[None]]:
        return [tracked.task for tracked in self._executions.values()]

    def get_queue_status(self) -> dict[str, Any]:
        """Snapshot of in-flight executions, oldest first."""
        queue = sorted(self._executions.values(), key=lambda t: t.started_at)
        return {
            "activeExecutions": self.active_count,
            "maxConcurrent": self.max_concurrent,
            "queuedCount": len(queue),
            "queue": [
                {"id": tracked.execution_id, "timestamp": tracked.started_at.isoformat()}
                for tracked in queue
            ],
        }
