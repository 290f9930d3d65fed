"""
Enrichment Routes - streamed batch enrichment + last results

POST /api/v1/enrich streams Server-Sent Events:
    :ok
    data: {"type": "progress", ...}
    data: {"type": "company_done", ...}
    ...
    data: {"type": "complete", ...}
"""
import asyncio
import logging
from typing import AsyncIterator, Callable, Optional, Set

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import StreamingResponse

from prospector.config import has_usable_api_key, settings
from prospector.schemas.enrichment import EnrichRequest, summarize
from prospector.services.pipeline_orchestrator import (
    EnrichmentOrchestrator,
    create_enrichment_orchestrator,
)
from prospector.services.result_store import DEFAULT_SESSION_ID, ResultStore, get_result_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/enrich", tags=["Enrichment"])

OrchestratorFactory = Callable[..., EnrichmentOrchestrator]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# Batches keep running after their client goes away; hold references until done
_running_batches: Set[asyncio.Task] = set()


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_session_id(x_session_id: Optional[str] = Header(default=None)) -> str:
    return (x_session_id or "").strip() or DEFAULT_SESSION_ID


def get_orchestrator_factory() -> OrchestratorFactory:
    return create_enrichment_orchestrator


# ============================================================================
# ROUTES
# ============================================================================

@router.post("")
async def enrich_companies(
    request: EnrichRequest,
    session_id: str = Depends(get_session_id),
    result_store: ResultStore = Depends(get_result_store),
    orchestrator_factory: OrchestratorFactory = Depends(get_orchestrator_factory)
):
    """Enrich + ICP-score a batch of scraped companies, streaming progress"""
    logger.info(f"POST /api/v1/enrich called with {len(request.companies)} companies")

    if not request.companies:
        raise HTTPException(status_code=400, detail="No companies provided")

    api_key = request.api_key if has_usable_api_key(request.api_key) else settings.APOLLO_API_KEY
    if not has_usable_api_key(api_key):
        raise HTTPException(
            status_code=400,
            detail="Apollo API key not configured. Please set it in API Settings."
        )

    orchestrator = orchestrator_factory(
        api_key=api_key,
        result_store=result_store,
        session_id=session_id,
    )

    return StreamingResponse(
        _event_stream(orchestrator, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/results")
async def get_enrichment_results(
    session_id: str = Depends(get_session_id),
    result_store: ResultStore = Depends(get_result_store)
):
    """Results of the last completed batch for this session"""
    results = result_store.get(session_id)
    if results is None:
        raise HTTPException(status_code=404, detail="No enrichment results yet")

    return {
        **summarize(results),
        "results": [r.model_dump(mode="json") for r in results],
    }


@router.delete("/results")
async def clear_enrichment_results(
    session_id: str = Depends(get_session_id),
    result_store: ResultStore = Depends(get_result_store)
):
    """Forget the session's last batch (a new scrape is starting)"""
    result_store.clear(session_id)
    return {"cleared": True, "session_id": session_id}


# ============================================================================
# STREAMING
# ============================================================================

async def _event_stream(
    orchestrator: EnrichmentOrchestrator,
    request: EnrichRequest
) -> AsyncIterator[str]:
    """
    Relay orchestrator events as SSE frames.

    The batch runs in its own task feeding a queue, so a client disconnect
    does not stop it unless ENRICH_CANCEL_ON_DISCONNECT is set.
    """
    queue: asyncio.Queue = asyncio.Queue()
    client_gone = asyncio.Event()

    async def client_disconnected() -> bool:
        return client_gone.is_set()

    should_cancel = client_disconnected if settings.ENRICH_CANCEL_ON_DISCONNECT else None

    async def produce():
        try:
            async for event in orchestrator.run_batch(request.companies, should_cancel=should_cancel):
                await queue.put(event)
        finally:
            await queue.put(None)

    task = asyncio.create_task(produce())
    _running_batches.add(task)
    task.add_done_callback(_running_batches.discard)

    finished = False
    try:
        yield ":ok\n\n"
        while True:
            event = await queue.get()
            if event is None:
                break
            yield f"data: {event.model_dump_json()}\n\n"
        finished = True
    finally:
        if not finished:
            logger.warning("⚠️ Enrichment client disconnected before the batch finished")
            client_gone.set()

    # Re-raise orchestrator crashes
    await task
