"""
collector/api/routers/collection.py

Batch collection submission and status endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from collector.schemas.collection import (
    BatchAcceptedResponse,
    BatchCancelResponse,
    BatchStatusResponse,
    BatchSubmitRequest,
)
from collector.scraping.errors import BatchAlreadyRunningError, InvalidBatchError
from collector.services.collection_service import CollectionService, get_collection_service

router = APIRouter(prefix="/collection", tags=["collection"])


@router.post(
    "/batches",
    response_model=BatchAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_batch(
    payload: BatchSubmitRequest,
    collection_service: CollectionService = Depends(get_collection_service),
) -> BatchAcceptedResponse:
    """
    Start collecting the submitted locators in the background.
    """

    try:
        handle = collection_service.submit(payload.locators, delay_seconds=payload.delay_seconds)
    except InvalidBatchError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except BatchAlreadyRunningError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc

    return BatchAcceptedResponse(run_id=handle.id, total=len(payload.locators))


@router.get("/batches/current", response_model=BatchStatusResponse)
async def current_batch(
    collection_service: CollectionService = Depends(get_collection_service),
) -> BatchStatusResponse:
    run = collection_service.current_run()
    return BatchStatusResponse.build(
        run=run,
        running=collection_service.orchestrator.active_run is not None,
        latest=collection_service.latest_progress(),
        summary=collection_service.latest_summary(),
    )


@router.post(
    "/batches/{run_id}/cancel",
    response_model=BatchCancelResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def cancel_batch(
    run_id: str,
    collection_service: CollectionService = Depends(get_collection_service),
) -> BatchCancelResponse:
    """
    Stop dispatching further jobs for `run_id`. Running jobs finish normally.
    """

    handle = collection_service.get_run(run_id)
    if handle is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Batch run '{run_id}' not found.",
        )
    return BatchCancelResponse(run_id=run_id, cancelled=handle.cancel())
