"""Process-wide service instances for the HTTP layer.

The document service owns the limiter, so exactly one instance must exist per
process for the request limit to hold across all incoming requests.
"""

from __future__ import annotations

import logging

from crpt.services.document_service import DocumentService, build_document_service

logger = logging.getLogger(__name__)


_service: DocumentService | None = None


def get_document_service() -> DocumentService:
    """Return the process-wide document service, building it on first use."""

    global _service

    if _service is None:
        _service = build_document_service()
        logger.info(
            "document_service.created",
            extra={"limiter": _service.dispatcher.limiter.stats()},
        )

    return _service


async def shutdown_document_service() -> None:
    """Close the process-wide service (limiter task and HTTP connections)."""

    global _service

    if _service is None:
        return

    service, _service = _service, None
    await service.aclose()
    logger.info("document_service.closed")
