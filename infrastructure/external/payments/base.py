"""
Base payment client implementing shared concerns: http, logging, error classification.

Concrete providers subclass and implement provider-specific request building
and response parsing. Failure classification lives here and only here:

- no response before the timeout        -> GatewayTimeoutError
- a response with a non-2xx status      -> GatewayAPIError (gateway code + message)
- no response at all (DNS, refused...)  -> NetworkError
- taxonomy errors                       -> re-raised untouched
- anything else                         -> GatewayAPIError with the system code
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

import httpx

from application.utils.payments import sanitize_for_logging
from core.logging_config import get_logger
from domain.common.exceptions import (
    BusinessException,
    GatewayAPIError,
    GatewayProtocolError,
    GatewayTimeoutError,
    NetworkError,
)
from shared.codes.payment_codes import GATEWAY_SYSTEM_ERROR


class BasePaymentClient:
    provider: str = "base"
    user_agent: str = "CIBPAY-SATIM-Module/1.0"

    def __init__(
        self,
        *,
        base_url: str,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Any = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout or httpx.Timeout(30.0, connect=5.0)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logger or get_logger(__name__)

    @property
    def timeouts(self) -> httpx.Timeout:
        return self._timeout

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "User-Agent": self.user_agent,
                },
            )
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Issue one request and return the decoded JSON body."""
        self.logger.debug(
            "gateway_request",
            provider=self.provider,
            operation=operation,
            method=method,
            endpoint=endpoint,
            params=sanitize_for_logging(params),
            form=sanitize_for_logging(data),
        )
        started = time.perf_counter()
        try:
            async with self.client() as http:
                response = await http.request(method, endpoint, params=params, data=data)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            self._log_call(method, endpoint, response.status_code, elapsed_ms, operation)
            response.raise_for_status()
            return self._decode(response, operation)
        except httpx.TimeoutException as exc:
            self.logger.error("gateway_timeout", provider=self.provider, operation=operation)
            raise GatewayTimeoutError("Request timeout", details={"operation": operation}) from exc
        except httpx.HTTPStatusError as exc:
            body = self._safe_body(exc.response)
            gateway_code = str(body.get("errorCode") or body.get("ErrorCode") or GATEWAY_SYSTEM_ERROR)
            message = body.get("errorMessage") or body.get("ErrorMessage") or "Unknown server error"
            self.logger.error(
                "gateway_api_error",
                provider=self.provider,
                operation=operation,
                error_code=gateway_code,
                error_message=message,
                status=exc.response.status_code,
            )
            raise GatewayAPIError(
                message,
                gateway_code=gateway_code,
                status_code=exc.response.status_code,
                details={"operation": operation},
            ) from exc
        except httpx.TransportError as exc:
            self.logger.error("gateway_unreachable", provider=self.provider, operation=operation, error=type(exc).__name__)
            raise NetworkError("No response from SATIM server", details={"operation": operation}) from exc
        except BusinessException:
            raise
        except Exception as exc:
            self.logger.error("gateway_unexpected_error", provider=self.provider, operation=operation, error=str(exc))
            raise GatewayAPIError(
                str(exc) or "Unknown error",
                gateway_code=GATEWAY_SYSTEM_ERROR,
                details={"operation": operation},
            ) from exc

    def _decode(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayProtocolError(
                "Gateway returned a non-JSON response",
                details={"operation": operation, "status": response.status_code},
            ) from exc
        if not isinstance(body, dict):
            raise GatewayProtocolError(
                "Gateway returned an unexpected payload",
                details={"operation": operation, "status": response.status_code},
            )
        return body

    @staticmethod
    def _safe_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _log_call(self, method: str, endpoint: str, status: int, elapsed_ms: float, operation: str) -> None:
        self.logger.info(
            "gateway_call",
            provider=self.provider,
            operation=operation,
            method=method,
            endpoint=endpoint,
            status=status,
            elapsed_ms=elapsed_ms,
        )
