from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class TransportResponse:
    """Raw response returned by a transport.

    Attributes:
        status_code: HTTP status code.
        body: Undecoded response body.
        headers: Response headers (may be empty).
    """

    status_code: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)


class AbstractTransport(ABC):
    """Interface for transports that perform one outbound call."""

    @abstractmethod
    async def send(
        self,
        target: str,
        method: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None,
    ) -> TransportResponse:
        """Perform the call and return the raw response.

        Args:
            target: Path (or absolute URL) of the resource.
            method: HTTP method.
            headers: Request headers.
            body: Encoded request body, if any.
            timeout: Time budget in seconds for this call, or None.

        Returns:
            TransportResponse: Status code and raw body.

        Raises:
            TransportFailureError: On connectivity problems or timeout.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        return None
