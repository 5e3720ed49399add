"""
Caller-side retry for transient gateway failures.

Nothing in the client or the services retries on its own; a caller that
knows an operation is safe to repeat wraps it explicitly::

    verification = await retry_transient(lambda: service.verify_payment(pid))

Only errors flagged ``retryable`` (network failures, timeouts) are retried.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


T = TypeVar("T")

logger = get_logger(__name__)


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, BusinessException) and bool(exc.retryable)


async def retry_transient(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
) -> T:
    """Run ``fn`` with up to ``max_retries`` extra attempts; the last error is re-raised."""

    def _log_retry(state: Any) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "gateway_retry",
            attempt=state.attempt_number,
            error=getattr(exc, "error_type", type(exc).__name__),
        )

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=delay, min=delay, max=delay * 8),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await fn()
    raise RuntimeError("unreachable")  # pragma: no cover
