"""Client exception types.

Every failure the dispatcher can report is an ``AppError`` so callers and the
HTTP gateway can handle, log and serialise them consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    target: str
    method: str
    capacity: int
    window_seconds: float
    timeout_seconds: float
    transport: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for client failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationError(AppError, ValueError):
    """Raised when limiter or client parameters are invalid."""


class ValidationAppError(AppError):
    """Raised when caller input fails validation."""


class PermitCancelledError(AppError):
    """Raised when a pending permit request is withdrawn by the limiter."""


@dataclass
class ApiError(AppError):
    """The remote service rejected the request.

    Attributes:
        status_code: HTTP status returned by the service.
    """

    status_code: int = 0


@dataclass
class MalformedResponseError(AppError):
    """A success or error body could not be decoded.

    Attributes:
        status_code: HTTP status of the undecodable response.
        cause: The underlying decode failure.
    """

    status_code: int | None = None
    cause: BaseException | None = None


@dataclass
class TransportFailureError(AppError):
    """The call never produced a response (connectivity, timeout).

    Attributes:
        cause: The underlying transport exception.
        timed_out: Whether the failure was a timeout.
    """

    cause: BaseException | None = None
    timed_out: bool = False


@dataclass
class DecodeError(AppError):
    """Raised by the codec when bytes do not match the expected shape."""

    cause: BaseException | None = None
