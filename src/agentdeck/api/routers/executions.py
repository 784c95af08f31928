"""Executions router: history, detail, cancel, and queue status."""

from fastapi import APIRouter, Query

from agentdeck.api.deps import Executions, Store
from agentdeck.api.schemas import CancelResponse, QueueStatus
from agentdeck.domain.models import Execution
from agentdeck.infrastructure.exceptions import (
    ExecutionNotCancellableError,
    ExecutionNotFoundError,
    InvalidLimitError,
)
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/executions")

MIN_LIMIT = 1
MAX_LIMIT = 1000


@router.get("", response_model=list[Execution])
async def list_executions(store: Store, limit: int | None = Query(default=None)):
    """List executions newest first, optionally truncated to ``limit``."""
    if limit is not None and not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise InvalidLimitError(limit, MIN_LIMIT, MAX_LIMIT)
    return await store.list_executions(limit)


@router.get("/queue/status", response_model=QueueStatus)
async def queue_status(executions: Executions):
    return executions.get_queue_status()


@router.get("/{execution_id}", response_model=Execution)
async def get_execution(execution_id: str, store: Store):
    execution = await store.get_execution(execution_id)
    if execution is None:
        raise ExecutionNotFoundError(execution_id)
    return execution


@router.post("/{execution_id}/cancel", response_model=CancelResponse)
async def cancel_execution(execution_id: str, store: Store, executions: Executions):
    """Cancel an execution that is still running in this process.

    Raises:
        404: Unknown execution.
        409: Execution is not in flight (finished, or started before a restart).
    """
    if await store.get_execution(execution_id) is None:
        raise ExecutionNotFoundError(execution_id)

    if not executions.cancel_execution(execution_id):
        raise ExecutionNotCancellableError(execution_id)

    logger.info("execution_cancelled", execution_id=execution_id)
    return CancelResponse(success=True, message="Execution cancelled successfully")
