from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header

from crpt.core.dependencies import get_document_service
from crpt.schemas.documents import DocumentResponse, parse_document
from crpt.services.document_service import DocumentService

router = APIRouter(tags=["Documents"])


@router.post("/documents", response_model=DocumentResponse)
async def create_document(
    payload: Annotated[dict[str, Any], Body(description="Document JSON with a doc_type discriminant")],
    signature: Annotated[str, Header(alias="Signature", description="Detached document signature")],
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> DocumentResponse:
    """Register a document through the rate-limited client.

    The call waits for a permit, so under load the response is delayed
    rather than rejected.

    Raises:
        ValidationAppError: If the payload is not a supported document (422).
        ApiError, MalformedResponseError, TransportFailureError,
        PermitCancelledError: Mapped by the global exception handlers.
    """
    document = parse_document(payload)
    outcome = await service.create_document(document, signature)
    return outcome.unwrap()
