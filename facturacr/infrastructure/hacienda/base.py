"""
Shared plumbing for the tax authority HTTP clients.

Idempotent reads (tokens, exchange rates, registry lookups) are retried
with exponential backoff on transport errors. Document submission is not.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from facturacr.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BaseHaciendaClient:
    """
    Base class for httpx clients talking to the tax authority.

    Provides:
    - one AsyncClient per call, optionally over an injected transport
    - tenacity retries for idempotent requests
    """

    def __init__(
        self,
        timeout: float = 30,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _get_retry_decorator(self) -> Any:
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8,
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "hacienda_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _with_retry(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run an idempotent request with retries on transport errors."""
        result = await self._get_retry_decorator()(operation)(*args, **kwargs)
        return cast(T, result)
