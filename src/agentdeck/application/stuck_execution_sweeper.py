"""Periodic cleanup of executions left in the running state."""

import asyncio
from typing import TYPE_CHECKING

from agentdeck.infrastructure.logger import get_logger

if TYPE_CHECKING:
    from agentdeck.application.execution_manager import ExecutionManager

logger = get_logger(__name__)


class StuckExecutionSweeper:
    """Runs a startup sweep, then sweeps on a fixed interval.

    Any record still running at startup cannot have a live background task,
    so the startup sweep uses a zero-minute threshold.
    """

    def __init__(
        self,
        manager: "ExecutionManager",
        interval_minutes: float = 5.0,
        stuck_timeout_minutes: float = 10.0,
    ):
        """Initialize sweeper.

        Args:
            manager: Execution manager that performs the sweep
            interval_minutes: Minutes between periodic sweeps
            stuck_timeout_minutes: Age at which a running record is failed
        """
        self.manager = manager
        self.interval_minutes = interval_minutes
        self.stuck_timeout_minutes = stuck_timeout_minutes
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        """Run the startup sweep and schedule the periodic loop."""
        try:
            count = await self.manager.sweep_stuck_executions(0)
            if count > 0:
                logger.info("startup_cleanup_completed", count=count)
        except Exception as e:
            logger.error("startup_cleanup_failed", error=str(e))

        if not self.is_running:
            self._sweep_task = asyncio.create_task(
                self._sweep_loop(self.interval_minutes * 60), name="stuck-execution-sweeper"
            )
            logger.info(
                "stuck_execution_sweeper_started",
                interval_minutes=self.interval_minutes,
                stuck_timeout_minutes=self.stuck_timeout_minutes,
            )

    async def stop(self) -> None:
        """Stop the periodic loop."""
        if self._sweep_task and not self._sweep_task.done():
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            logger.info("stuck_execution_sweeper_stopped")
        self._sweep_task = None

    async def _sweep_loop(self, interval_seconds: float) -> None:
        """Sweep forever; a failed iteration is logged and the loop continues."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.manager.sweep_stuck_executions(self.stuck_timeout_minutes)
            except Exception as e:
                logger.error("periodic_cleanup_failed", error=str(e))
