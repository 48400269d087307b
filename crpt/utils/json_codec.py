"""JSON codec for request bodies and response payloads.

Wraps pydantic serialisation so the dispatcher never deals with schema
details: it encodes whatever model it is handed and decodes into whatever
model the request expects.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from crpt.core.errors import DecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonCodec:
    """Encode pydantic models to JSON bytes and decode them back.

    Attributes:
        by_alias: Serialise using field aliases (wire names).
        exclude_none: Drop fields whose value is None.
    """

    def __init__(self, *, by_alias: bool = True, exclude_none: bool = True) -> None:
        self.by_alias = by_alias
        self.exclude_none = exclude_none

    def encode(self, value: BaseModel) -> bytes:
        """Serialise a model to UTF-8 JSON bytes."""
        return value.model_dump_json(
            by_alias=self.by_alias,
            exclude_none=self.exclude_none,
        ).encode("utf-8")

    def decode(self, raw: bytes, model: type[ModelT]) -> ModelT:
        """Parse JSON bytes into ``model``.

        Args:
            raw: Response body.
            model: Expected shape.

        Returns:
            The validated model instance.

        Raises:
            DecodeError: If the body is not JSON or does not match the model.
        """
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            raise DecodeError(
                code="decode_failed",
                message=f"Body does not match {model.__name__}: {exc.error_count()} error(s)",
                details={"hint": _preview(raw)},
                cause=exc,
            ) from exc


def _preview(raw: bytes, limit: int = 200) -> str:
    text = raw.decode("utf-8", errors="replace")
    return text if len(text) <= limit else text[:limit] + "..."
