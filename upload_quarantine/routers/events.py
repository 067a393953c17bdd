import asyncio
import logging

from fastapi import APIRouter, HTTPException

from upload_quarantine import pipeline
from upload_quarantine.errors import ConfigurationError, SecretUnavailable, SubmissionError
from upload_quarantine.models import Resolution, ResolutionState, UploadEvent

logger = logging.getLogger("quarantine.events")

router = APIRouter(
    prefix="/events",
    tags=["Upload events"],
)


@router.post(
    "/object-finalized",
    response_model=Resolution,
    summary="Resolve a verdict for a newly uploaded object and route it",
)
async def object_finalized(event: UploadEvent):
    """
    Receives the storage object resource pushed by the host on upload.

    Blocks until the object is routed, the poll bound is hit or a failure is
    absorbed. A rejected submission answers 502 so the host redelivers.
    """
    try:
        orchestrator = pipeline.get_orchestrator()
    except (ConfigurationError, SecretUnavailable) as exc:
        logger.error("Cannot build pipeline for %s/%s: %s", event.bucket, event.name, exc)
        return Resolution(state=ResolutionState.FAILED, object_name=event.name, detail=str(exc))

    try:
        return await asyncio.to_thread(orchestrator.handle, event)
    except SubmissionError as exc:
        logger.error("Submission of %s/%s rejected: %s", event.bucket, event.name, exc.message)
        raise HTTPException(status_code=502, detail=exc.message)
