"""Rate-limited dispatch of outbound calls.

The dispatcher is the only place where outbound calls are issued. For every
submitted request it:
- Waits for a permit from the limiter (the only suspension point before I/O)
- Encodes the payload and performs the call through the transport
- Classifies the response into a typed Outcome
- Emits a DispatchEvent to the configured sink

It never retries; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Mapping

from crpt.adapters.rate_limit.base import AbstractPermitLimiter
from crpt.adapters.transport.base import AbstractTransport, TransportResponse
from crpt.core.errors import (
    ApiError,
    DecodeError,
    MalformedResponseError,
    PermitCancelledError,
    TransportFailureError,
)
from crpt.schemas.dispatch import DispatchEvent, OutboundRequest, Outcome, OutcomeStatus, T
from crpt.schemas.documents import ErrorResponse
from crpt.utils.json_codec import JsonCodec

logger = logging.getLogger(__name__)

EventSink = Callable[[DispatchEvent], None]


def log_dispatch_event(event: DispatchEvent) -> None:
    """Default event sink: one structured log record per request."""
    level = logging.INFO if event.outcome is OutcomeStatus.SUCCEEDED else logging.WARNING
    logger.log(
        level,
        "dispatch.completed",
        extra={
            "method": event.method,
            "target": event.target,
            "status_code": event.status_code,
            "response_body": event.body,
            "outcome": event.outcome.value,
            "error_code": event.error_code,
            "duration_ms": round(event.duration_ms, 2),
        },
    )


class BoundedDispatcher:
    """Issue outbound calls behind a permit limiter.

    Attributes:
        limiter: Permit source gating every call.
        transport: Performs the actual call.
    """

    def __init__(
        self,
        *,
        transport: AbstractTransport,
        limiter: AbstractPermitLimiter,
        codec: JsonCodec | None = None,
        timeout_seconds: float | None = 10.0,
        event_sink: EventSink | None = None,
        body_max_chars: int = 2000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            transport: Transport used for outbound calls.
            limiter: Limiter granting one permit per call.
            codec: Body codec (JSON by default).
            timeout_seconds: Default budget for admission plus transport; None disables it.
            event_sink: Receives one DispatchEvent per request (logs by default).
            body_max_chars: Response bodies are truncated to this length in events.
            clock: Monotonic time source in seconds.
        """
        self.transport = transport
        self.limiter = limiter
        self._codec = codec or JsonCodec()
        self._timeout_seconds = timeout_seconds
        self._event_sink = event_sink or log_dispatch_event
        self._body_max_chars = body_max_chars
        self._clock = clock

    async def submit(
        self,
        request: OutboundRequest[T],
        *,
        timeout: float | None = None,
    ) -> Outcome[T]:
        """Dispatch one request and return its terminal outcome.

        Args:
            request: The call to perform.
            timeout: Budget in seconds for admission plus transport; defaults
                to the dispatcher's configured timeout.

        Returns:
            Outcome: Success value or typed failure. Every failure short of task
            cancellation is returned, not raised, and recorded once.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled.
        """
        budget = self._timeout_seconds if timeout is None else timeout
        started = self._clock()
        deadline = None if budget is None else started + budget

        response: TransportResponse | None = None
        outcome: Outcome[T] = Outcome(status=OutcomeStatus.CANCELLED)
        try:
            outcome, response = await asyncio.wait_for(
                self._dispatch(request, deadline),
                timeout=budget,
            )
        except asyncio.TimeoutError as exc:
            outcome = Outcome.failed(
                OutcomeStatus.TRANSPORT_FAILURE,
                TransportFailureError(
                    code="dispatch_timeout",
                    message=f"{request.method} {request.target} did not complete within {budget}s",
                    details={
                        "method": request.method,
                        "target": request.target,
                        "timeout_seconds": budget,
                    },
                    cause=exc,
                    timed_out=True,
                ),
            )
        except Exception as exc:
            logger.exception(
                "dispatch.unexpected_error",
                extra={"method": request.method, "target": request.target},
            )
            outcome = Outcome.failed(
                OutcomeStatus.TRANSPORT_FAILURE,
                TransportFailureError(
                    code="dispatch_failed",
                    message=f"{request.method} {request.target} failed: {exc}",
                    details={"method": request.method, "target": request.target},
                    cause=exc,
                ),
            )
        finally:
            # Cancellation leaves the default CANCELLED outcome and re-raises.
            self._record(request, outcome, response, started)

        return outcome

    async def aclose(self) -> None:
        """Close the limiter and the transport."""
        await self.limiter.close()
        await self.transport.aclose()

    async def _dispatch(
        self,
        request: OutboundRequest[T],
        deadline: float | None,
    ) -> tuple[Outcome[T], TransportResponse | None]:
        try:
            await self.limiter.acquire()
        except PermitCancelledError as exc:
            return Outcome.failed(OutcomeStatus.CANCELLED, exc), None

        headers = self._build_headers(request)

        try:
            body = self._codec.encode(request.payload) if request.payload is not None else None
            remaining = None if deadline is None else max(0.0, deadline - self._clock())
            response = await self.transport.send(
                request.target,
                request.method,
                headers,
                body,
                remaining,
            )
        except TransportFailureError as exc:
            return Outcome.failed(OutcomeStatus.TRANSPORT_FAILURE, exc), None
        except Exception as exc:
            return (
                Outcome.failed(
                    OutcomeStatus.TRANSPORT_FAILURE,
                    TransportFailureError(
                        code="transport_error",
                        message=f"{request.method} {request.target} failed: {exc}",
                        details={"method": request.method, "target": request.target},
                        cause=exc,
                    ),
                ),
                None,
            )

        return self._classify(request, response), response

    @staticmethod
    def _build_headers(request: OutboundRequest[T]) -> Mapping[str, str]:
        headers = {"Content-Type": "application/json"}
        if request.signature is not None:
            headers["Signature"] = request.signature
        headers.update(request.headers)
        return headers

    def _classify(self, request: OutboundRequest[T], response: TransportResponse) -> Outcome[T]:
        """Map a raw response to an Outcome.

        2xx bodies decode into the request's response model; any other status
        decodes an ErrorResponse into an ApiError. A body that cannot be
        decoded yields MalformedResponseError carrying the original status.
        """
        status_code = response.status_code

        if 200 <= status_code < 300:
            try:
                value = self._codec.decode(response.body, request.response_model)
            except DecodeError as exc:
                return self._malformed(request, status_code, exc)
            return Outcome.succeeded(value, status_code)

        try:
            error_body = self._codec.decode(response.body, ErrorResponse)
        except DecodeError as exc:
            return self._malformed(request, status_code, exc)

        details = {
            "http_status": status_code,
            "method": request.method,
            "target": request.target,
        }
        if request.error_context:
            details["context"] = {"operation": request.error_context}

        return Outcome.failed(
            OutcomeStatus.API_ERROR,
            ApiError(
                code="api_error",
                message=error_body.message,
                details=details,  # type: ignore[arg-type]
                status_code=status_code,
            ),
            status_code=status_code,
        )

    @staticmethod
    def _malformed(
        request: OutboundRequest[T],
        status_code: int,
        exc: DecodeError,
    ) -> Outcome[T]:
        return Outcome.failed(
            OutcomeStatus.MALFORMED_RESPONSE,
            MalformedResponseError(
                code="malformed_response",
                message=f"Could not decode {status_code} response from {request.target}: {exc.message}",
                details={
                    "http_status": status_code,
                    "method": request.method,
                    "target": request.target,
                },
                status_code=status_code,
                cause=exc,
            ),
            status_code=status_code,
        )

    def _record(
        self,
        request: OutboundRequest[T],
        outcome: Outcome[T],
        response: TransportResponse | None,
        started: float,
    ) -> None:
        body: str | None = None
        if response is not None:
            body = response.body.decode("utf-8", errors="replace")
            if len(body) > self._body_max_chars:
                body = body[: self._body_max_chars] + "..."

        event = DispatchEvent(
            method=request.method,
            target=request.target,
            outcome=outcome.status,
            status_code=outcome.status_code,
            body=body,
            duration_ms=(self._clock() - started) * 1000,
            error_code=outcome.error.code if outcome.error is not None else None,
        )

        try:
            self._event_sink(event)
        except Exception:
            logger.exception(
                "dispatch.event_sink_failed",
                extra={"method": request.method, "target": request.target},
            )
