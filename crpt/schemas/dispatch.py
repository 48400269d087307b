"""Value types flowing through the dispatcher: requests, outcomes and events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Mapping, TypeVar

from pydantic import BaseModel

from crpt.core.errors import AppError

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class OutboundRequest(Generic[T]):
    """An immutable description of one outbound call.

    Attributes:
        method: HTTP method.
        target: Resource path relative to the API base URL.
        response_model: Shape expected for a 2xx body.
        payload: Model encoded as the request body, if any.
        signature: Detached signature sent in the ``Signature`` header.
        headers: Extra request headers.
        error_context: Prefix describing the operation, used in error details.
    """

    method: str
    target: str
    response_model: type[T]
    payload: BaseModel | None = None
    signature: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    error_context: str | None = None


class OutcomeStatus(str, Enum):
    """Terminal states of a submitted request."""

    SUCCEEDED = "succeeded"
    API_ERROR = "api_error"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Terminal result of a submitted request.

    Exactly one of ``value`` (on success) or ``error`` (otherwise) is set.

    Attributes:
        status: Terminal state.
        value: Decoded success body.
        error: Typed failure.
        status_code: HTTP status, when a response was received.
    """

    status: OutcomeStatus
    value: T | None = None
    error: AppError | None = None
    status_code: int | None = None

    @classmethod
    def succeeded(cls, value: T, status_code: int) -> "Outcome[T]":
        return cls(status=OutcomeStatus.SUCCEEDED, value=value, status_code=status_code)

    @classmethod
    def failed(
        cls,
        status: OutcomeStatus,
        error: AppError,
        status_code: int | None = None,
    ) -> "Outcome[T]":
        return cls(status=status, error=error, status_code=status_code)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    def unwrap(self) -> T:
        """Return the success value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class DispatchEvent:
    """Diagnostic record of one submitted request.

    Attributes:
        method: HTTP method.
        target: Resource path.
        outcome: Terminal state.
        status_code: HTTP status, when a response was received.
        body: Response body text (possibly truncated), when received.
        duration_ms: Time from submit to terminal state.
        error_code: ``AppError.code`` of the failure, if any.
    """

    method: str
    target: str
    outcome: OutcomeStatus
    status_code: int | None = None
    body: str | None = None
    duration_ms: float = 0.0
    error_code: str | None = None
