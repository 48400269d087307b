"""Pydantic schemas for document-registration payloads and responses.

Document kinds form a closed set: each kind has its own model, tagged by the
``doc_type`` discriminant, and ``DOCUMENT_MODELS`` maps every kind to it.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from crpt.core.errors import ValidationAppError


class DocumentKind(str, Enum):
    """Document kinds accepted by the registration endpoint."""

    LP_INTRODUCE_GOODS = "LP_INTRODUCE_GOODS"


class DocumentDescription(BaseModel):
    """Free-form description block attached to a document."""

    model_config = ConfigDict(populate_by_name=True)

    participant_inn: str | None = Field(
        default=None,
        alias="participantInn",
        description="Taxpayer number of the participant filing the document.",
    )


class LpIntroduceGoodsProduct(BaseModel):
    """A single product line of an LP_INTRODUCE_GOODS document."""

    certificate_document: str | None = None
    certificate_document_date: date | None = None
    certificate_document_number: str | None = None
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: date | None = None
    tnved_code: str | None = Field(
        default=None,
        description="Commodity code (TN VED).",
    )
    uit_code: str | None = Field(
        default=None,
        description="Unique identification code of the item.",
    )
    uitu_code: str | None = Field(
        default=None,
        description="Unique identification code of the transport package.",
    )


class DocumentBase(BaseModel):
    """Attributes shared by every document kind."""

    model_config = ConfigDict(populate_by_name=True)

    doc_type: DocumentKind
    id: str | None = Field(default=None, alias="doc_id")
    status: str | None = Field(default=None, alias="doc_status")
    description: DocumentDescription | None = None
    import_request: bool = Field(default=False, alias="importRequest")


class LpIntroduceGoodsDocument(DocumentBase):
    """Introduction of goods into circulation (domestic production)."""

    doc_type: Literal[DocumentKind.LP_INTRODUCE_GOODS] = DocumentKind.LP_INTRODUCE_GOODS
    owner_inn: str | None = None
    participant_inn: str | None = None
    producer_inn: str | None = None
    production_date: date | None = None
    production_type: str | None = None
    products: list[LpIntroduceGoodsProduct] = Field(default_factory=list)
    reg_date: date | None = None
    reg_number: str | None = None


DOCUMENT_MODELS: dict[DocumentKind, type[DocumentBase]] = {
    DocumentKind.LP_INTRODUCE_GOODS: LpIntroduceGoodsDocument,
}


def parse_document(data: Mapping[str, Any]) -> DocumentBase:
    """Build the document model selected by the ``doc_type`` discriminant.

    Args:
        data: Decoded JSON object.

    Returns:
        The validated document of the matching kind.

    Raises:
        ValidationAppError: If the kind is missing/unknown or fields are invalid.
    """
    raw_kind = data.get("doc_type")
    try:
        kind = DocumentKind(raw_kind)
    except ValueError as exc:
        raise ValidationAppError(
            code="unknown_document_kind",
            message=f"Unknown document kind: {raw_kind!r}",
            details={"hint": f"Supported kinds: {', '.join(k.value for k in DocumentKind)}"},
        ) from exc

    model = DOCUMENT_MODELS[kind]
    try:
        return model.model_validate(data)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_document",
            message=f"Invalid {kind.value} document: {exc}",
        ) from exc


class DocumentResponse(BaseModel):
    """Successful response of the document creation endpoint."""

    id: str = Field(..., description="Identifier assigned to the registered document.")


class ErrorResponse(BaseModel):
    """Error payload returned by the API for non-2xx responses."""

    error_message: str = Field(..., description="Human-readable reason of the failure.")

    @property
    def message(self) -> str:
        return self.error_message
