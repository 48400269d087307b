"""Document-registration operations built on the bounded dispatcher."""

from __future__ import annotations

import logging

from crpt.adapters.rate_limit.windowed import WindowedLimiter
from crpt.adapters.transport.factory import create_transport
from crpt.core.config import settings
from crpt.schemas.dispatch import OutboundRequest, Outcome
from crpt.schemas.documents import DocumentBase, DocumentKind, DocumentResponse
from crpt.services.dispatcher import BoundedDispatcher

logger = logging.getLogger(__name__)

DOCUMENT_CREATION_PATH = "/lk/documents/create"
DOCUMENT_CREATION_ERROR_MESSAGE = "Failed to create document"


class DocumentService:
    """Client operations of the document-registration API.

    All calls share one dispatcher, so the configured request limit applies
    across every concurrent caller of this service.
    """

    def __init__(self, dispatcher: BoundedDispatcher) -> None:
        self.dispatcher = dispatcher

    async def create_document(
        self,
        document: DocumentBase,
        signature: str,
        *,
        timeout: float | None = None,
    ) -> Outcome[DocumentResponse]:
        """Register a document.

        Args:
            document: Document of any supported kind.
            signature: Detached signature of the document, sent as a header.
            timeout: Optional per-call budget overriding the configured one.

        Returns:
            Outcome carrying the registered document id or a typed failure.
        """
        request = OutboundRequest(
            method="POST",
            target=DOCUMENT_CREATION_PATH,
            response_model=DocumentResponse,
            payload=document,
            signature=signature,
            error_context=DOCUMENT_CREATION_ERROR_MESSAGE,
        )

        outcome = await self.dispatcher.submit(request, timeout=timeout)
        if not outcome.ok:
            logger.warning(
                "document.create_failed",
                extra={
                    "doc_type": DocumentKind(document.doc_type).value,
                    "outcome": outcome.status.value,
                    "status_code": outcome.status_code,
                    "error_message": outcome.error.message if outcome.error else None,
                },
            )
        return outcome

    async def aclose(self) -> None:
        await self.dispatcher.aclose()


def build_document_service() -> DocumentService:
    """Wire limiter, transport and dispatcher from settings.

    Raises:
        ConfigurationError: If limiter or transport settings are invalid.
    """
    limiter = WindowedLimiter(
        capacity=settings.crpt.request_limit,
        window=settings.crpt.window_seconds,
    )
    dispatcher = BoundedDispatcher(
        transport=create_transport(),
        limiter=limiter,
        timeout_seconds=settings.crpt.request_timeout_seconds,
        body_max_chars=settings.crpt.log_body_max_chars,
    )
    return DocumentService(dispatcher)
