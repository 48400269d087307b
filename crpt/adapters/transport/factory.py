"""Factory pattern for creating transport instances."""

from crpt.adapters.transport.base import AbstractTransport
from crpt.adapters.transport.httpx_transport import HttpxTransport
from crpt.core.config import settings
from crpt.core.errors import ConfigurationError


def create_transport() -> AbstractTransport:
    """Instantiate the transport configured in settings.

    Returns:
        AbstractTransport: Configured transport instance.

    Raises:
        ConfigurationError: If the transport name is unknown.
    """
    transport = settings.crpt.transport.lower()

    if transport == "httpx":
        return HttpxTransport(
            base_url=settings.crpt.base_url,
            timeout_seconds=settings.crpt.request_timeout_seconds,
        )

    raise ConfigurationError(
        code="unknown_transport",
        message=f"Unknown transport: '{transport}'. Supported transports: httpx",
        details={"transport": transport},
    )
