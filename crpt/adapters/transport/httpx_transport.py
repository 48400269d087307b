"""httpx transport adapter."""

from typing import Mapping

import httpx

from crpt.adapters.transport.base import AbstractTransport, TransportResponse
from crpt.core.errors import TransportFailureError


class HttpxTransport(AbstractTransport):
    """Transport performing calls with a shared ``httpx.AsyncClient``.

    Connection pooling is owned by the client; call ``aclose()`` on shutdown.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Prefix for relative targets.
            timeout_seconds: Default timeout when a call passes none.
            client: Pre-built client (tests inject one with a MockTransport).
        """
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.base_url = base_url

    async def send(
        self,
        target: str,
        method: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None,
    ) -> TransportResponse:
        request_timeout = timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT

        try:
            response = await self.client.request(
                method,
                target,
                headers=dict(headers),
                content=body,
                timeout=request_timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportFailureError(
                code="transport_timeout",
                message=f"{method} {target} timed out: {exc}",
                details={"method": method, "target": target, "transport": "httpx"},
                cause=exc,
                timed_out=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailureError(
                code="transport_error",
                message=f"{method} {target} failed: {exc}",
                details={"method": method, "target": target, "transport": "httpx"},
                cause=exc,
            ) from exc

        return TransportResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
