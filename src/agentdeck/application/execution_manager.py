"""Execution lifecycle: fire-and-forget model calls with a single terminal write."""

import asyncio
from typing import Any

from agentdeck.application.error_classifier import classify_execution_error
from agentdeck.application.execution_tracker import ExecutionTracker
from agentdeck.application.prompt_builder import build_prompt, filter_valid_tasks
from agentdeck.application.result_validator import validate_and_truncate
from agentdeck.domain.models import Agent, Execution, ExecutionStatus
from agentdeck.domain.ports.model_invoker import ModelInvoker
from agentdeck.infrastructure.database import Database
from agentdeck.infrastructure.exceptions import CapacityExceededError, NoValidTasksError
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Execution cancelled"


def format_timeout_message(timeout_ms: int) -> str:
    """Message stored when the model call exceeds its deadline."""
    seconds = timeout_ms / 1000
    shown = str(int(seconds)) if seconds.is_integer() else str(seconds)
    return f"Execution timed out after {shown} seconds"


class ExecutionManager:
    """Starts executions in the background and records how they end.

    Each execution gets exactly one terminal write, from either its
    background task or a sweep. Both only update records that are still
    running, so whichever commits first decides the outcome.
    """

    def __init__(
        self,
        database: Database,
        invoker: ModelInvoker,
        tracker: ExecutionTracker | None = None,
        timeout_ms: int = 300_000,
        enforce_concurrency_limit: bool = False,
    ):
        """Initialize execution manager.

        Args:
            database: Execution record store
            invoker: Model invoker for the prompt
            tracker: In-flight bookkeeping (a fresh one when omitted)
            timeout_ms: Deadline for each model call in milliseconds
            enforce_concurrency_limit: Refuse new executions at tracker capacity
        """
        self.database = database
        self.invoker = invoker
        self.tracker = tracker or ExecutionTracker()
        self.timeout_ms = timeout_ms
        self.enforce_concurrency_limit = enforce_concurrency_limit

    async def start_execution(self, agent: Agent) -> Execution:
        """Persist a running execution and dispatch the model call.

        Returns as soon as the record is stored; the model call runs in a
        detached task.

        Args:
            agent: Agent to execute

        Returns:
            The new execution (status running, no result)

        Raises:
            NoValidTasksError: If the agent has no non-blank task; nothing is stored
            CapacityExceededError: If enforcement is on and the tracker is full
        """
        valid_tasks = filter_valid_tasks(agent.tasks)
        if not valid_tasks:
            raise NoValidTasksError(agent.id)

        if self.enforce_concurrency_limit and not self.tracker.can_start_execution():
            raise CapacityExceededError(self.tracker.active_count, self.tracker.max_concurrent)

        execution = Execution(agent_id=agent.id, agent_name=agent.name)
        await self.database.insert_execution(execution)

        prompt = build_prompt(agent, valid_tasks)
        task = asyncio.create_task(
            self._run_execution(execution.id, prompt), name=f"execution-{execution.id}"
        )
        self.tracker.register(execution.id, task)

        logger.info(
            "execution_started",
            execution_id=execution.id,
            agent_id=agent.id,
            task_count=len(valid_tasks),
            active=self.tracker.active_count,
        )
        return execution

    async def _run_execution(self, execution_id: str, prompt: str) -> None:
        """Background body: call the model under a deadline, then record the outcome.

        Once the model call has an outcome the execution is marked settled,
        so a later cancel request cannot interrupt the terminal write.
        """
        try:
            try:
                text = await asyncio.wait_for(
                    self.invoker.generate(prompt), timeout=self.timeout_ms / 1000
                )
            except asyncio.TimeoutError:
                status, result = ExecutionStatus.FAILED, format_timeout_message(self.timeout_ms)
            except asyncio.CancelledError:
                self.tracker.mark_settled(execution_id)
                await self._record_outcome(execution_id, ExecutionStatus.FAILED, CANCELLED_MESSAGE)
                raise
            except Exception as e:
                status, result = ExecutionStatus.FAILED, classify_execution_error(e)
            else:
                validated = validate_and_truncate(text)
                if validated.warning:
                    logger.warning(
                        "execution_result_adjusted",
                        execution_id=execution_id,
                        warning=validated.warning,
                    )
                status, result = ExecutionStatus.COMPLETED, validated.data

            self.tracker.mark_settled(execution_id)
            await self._record_outcome(execution_id, status, result)
        finally:
            self.tracker.unregister(execution_id)

    async def _record_outcome(
        self, execution_id: str, status: ExecutionStatus, result: str
    ) -> None:
        """Write the terminal state once; storage errors are logged, not raised."""
        try:
            updated = await self.database.update_execution(execution_id, status, result)
        except Exception as e:
            # Record stays running until a sweep picks it up
            logger.error(
                "execution_update_failed",
                execution_id=execution_id,
                intended_status=status.value,
                original_outcome=result if status is ExecutionStatus.FAILED else "completed",
                db_error=str(e),
            )
            return

        if updated is None:
            # Missing, or already failed by a sweep
            logger.warning(
                "execution_outcome_discarded",
                execution_id=execution_id,
                discarded_status=status.value,
            )
            return

        if status is ExecutionStatus.COMPLETED:
            logger.info("execution_completed", execution_id=execution_id, result_chars=len(result))
        else:
            logger.warning("execution_failed", execution_id=execution_id, error=result)

    async def sweep_stuck_executions(self, timeout_minutes: float) -> int:
        """Force-fail running executions older than ``timeout_minutes``.

        Args:
            timeout_minutes: Age threshold; 0 fails every running record

        Returns:
            Number of records updated
        """
        count = await self.database.cleanup_stuck_executions(timeout_minutes)
        if count > 0:
            logger.info(
                "stuck_executions_cleaned", count=count, timeout_minutes=timeout_minutes
            )
        return count

    def cancel_execution(self, execution_id: str) -> bool:
        """Cancel an in-flight execution.

        The background task records ``failed`` with "Execution cancelled".

        Returns:
            False if the execution is not running in this process, or its
            model call has already settled and only the final write remains
        """
        return self.tracker.cancel(execution_id)

    async def wait_for_execution(self, execution_id: str) -> None:
        """Wait until an in-flight execution has recorded its outcome.

        Returns immediately when the execution is not running in this process.
        A cancelled execution is waited for without raising.
        """
        task = self.tracker.get_task(execution_id)
        if task is not None:
            await asyncio.wait([task])

    def can_start_execution(self) -> bool:
        return self.tracker.can_start_execution()

    def get_queue_status(self) -> dict[str, Any]:
        return self.tracker.get_queue_status()

    async def shutdown(self) -> None:
        """Cancel every in-flight execution and wait for them to finish.

        Executions whose model call already settled are left to finish
        their final write.
        """
        tasks = self.tracker.tasks()
        if not tasks:
            return

        cancelled = sum(
            1 for execution_id in self.tracker.execution_ids() if self.tracker.cancel(execution_id)
        )
        logger.info("cancelling_active_executions", count=cancelled, in_flight=len(tasks))
        await asyncio.gather(*tasks, return_exceptions=True)
