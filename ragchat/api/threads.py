"""Thread creation and run cancellation endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status

from ragchat.graph.retrieval import get_retrieval_graph
from ragchat.models.schemas import CancelRunResponse, ThreadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/threads", tags=["threads"])


@router.post("", response_model=ThreadResponse)
async def create_thread() -> ThreadResponse:
    """Create a thread to scope chat history and uploaded documents."""
    thread_id = get_retrieval_graph().threads.create()
    logger.info(f"Created thread {thread_id}")
    return ThreadResponse(thread_id=thread_id)


@router.post("/{thread_id}/runs/{run_id}/cancel", response_model=CancelRunResponse)
async def cancel_run(thread_id: str, run_id: str) -> CancelRunResponse:
    """Cancel an active run.

    The run's stream ends with an ``interrupt`` error event.

    Raises:
        404: No such run is active.
    """
    if not get_retrieval_graph().runs.cancel(thread_id, run_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Run not found",
        )
    return CancelRunResponse(cancelled=True)
