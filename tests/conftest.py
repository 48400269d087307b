"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any ``crpt`` import so the settings
object is built from test values rather than a local .env file.
"""

import asyncio
import os
from typing import Mapping

import pytest

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("CRPT_BASE_URL", "https://crpt.test/api/v3")
os.environ.setdefault("CRPT_REQUEST_LIMIT", "5")
os.environ.setdefault("CRPT_WINDOW_SECONDS", "1")
os.environ.setdefault("CRPT_REQUEST_TIMEOUT_SECONDS", "5")
os.environ.setdefault("LOG_FORMAT", "json")

from crpt.adapters.transport.base import AbstractTransport, TransportResponse  # noqa: E402
from crpt.schemas.documents import LpIntroduceGoodsDocument  # noqa: E402


async def never_sleep(_seconds: float) -> None:
    """Sleep that never returns: windows only change via ``replenish()``."""
    await asyncio.Event().wait()


class FakeTransport(AbstractTransport):
    """Transport double that records calls and replays canned responses."""

    def __init__(
        self,
        responses: list[TransportResponse] | None = None,
        *,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.hang = hang
        self.calls: list[dict] = []
        self.closed = False

    async def send(
        self,
        target: str,
        method: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None,
    ) -> TransportResponse:
        self.calls.append(
            {
                "target": target,
                "method": method,
                "headers": dict(headers),
                "body": body,
                "timeout": timeout,
                "at": asyncio.get_running_loop().time(),
            }
        )
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_transport():
    """Factory fixture building FakeTransport instances."""
    return FakeTransport


@pytest.fixture
def sleep_forever():
    """Sleep callable for limiters whose windows are advanced manually."""
    return never_sleep


@pytest.fixture
def document() -> LpIntroduceGoodsDocument:
    """A representative LP_INTRODUCE_GOODS document."""
    return LpIntroduceGoodsDocument.model_validate(
        {
            "doc_type": "LP_INTRODUCE_GOODS",
            "doc_id": "doc-local-1",
            "description": {"participantInn": "7700000000"},
            "importRequest": False,
            "owner_inn": "7700000000",
            "participant_inn": "7700000000",
            "producer_inn": "7800000000",
            "production_date": "2024-01-15",
            "production_type": "OWN_PRODUCTION",
            "products": [
                {
                    "tnved_code": "6401100000",
                    "uit_code": "010461111111111121LLLLLLLLLLLLL",
                    "production_date": "2024-01-15",
                }
            ],
            "reg_date": "2024-01-16",
            "reg_number": "R-1",
        }
    )
