from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from crpt.core.dependencies import get_document_service
from crpt.services.document_service import DocumentService

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> dict:
    """Health check endpoint.

    Returns:
        dict: ``status`` plus a snapshot of the limiter (capacity, available
        permits, queued callers).
    """

    return {"status": "ok", "limiter": service.dispatcher.limiter.stats()}
