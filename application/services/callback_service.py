"""
Inbound SATIM payment notifications: validate, authenticate, dispatch.

``CallbackProcessor.process`` never raises; every outcome is a ``CallbackAck``
the HTTP layer can render as-is (200 on success, 400 otherwise). Handlers
may be plain or async callables taking the parsed ``CallbackRequest``.
"""
from __future__ import annotations

import inspect
import json
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from application.dtos.payments import CallbackAck, CallbackRequest
from core.logging_config import get_logger
from domain.common.exceptions import ConfigurationError, SignatureError, ValidationError
from domain.payment.entity import PaymentStatus
from domain.services.signature import SIGNATURE_FIELD, SignatureValidator
from domain.services.status_mapper import map_callback_status


CallbackHandler = Callable[[CallbackRequest], Union[None, Awaitable[None]]]

REQUIRED_FIELDS = ("paymentId", "orderId", "status", "amount", "currency")
SIGNATURE_HEADER = "x-satim-signature"


class CallbackProcessor:
    def __init__(self, secret_key: str, logger: Any = None) -> None:
        if not secret_key:
            raise ConfigurationError("Callback secret key is required")
        self.validator = SignatureValidator(secret_key)
        self.logger = logger or get_logger(__name__)
        self._handlers: dict[PaymentStatus, Optional[CallbackHandler]] = {
            PaymentStatus.SUCCESS: None,
            PaymentStatus.FAILED: None,
            PaymentStatus.CANCELLED: None,
        }

    def on_success(self, handler: CallbackHandler) -> CallbackHandler:
        self._handlers[PaymentStatus.SUCCESS] = handler
        return handler

    def on_failure(self, handler: CallbackHandler) -> CallbackHandler:
        self._handlers[PaymentStatus.FAILED] = handler
        return handler

    def on_cancellation(self, handler: CallbackHandler) -> CallbackHandler:
        self._handlers[PaymentStatus.CANCELLED] = handler
        return handler

    async def process(
        self,
        payload: Union[Mapping[str, Any], bytes, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> CallbackAck:
        payment_id = "unknown"
        try:
            data = self._decode(payload)
            payment_id = str(data.get("paymentId") or "unknown")
            self.logger.info("callback_received", payment_id=payment_id, status=data.get("status"))

            for name in REQUIRED_FIELDS:
                if not data.get(name):
                    raise ValidationError(f"Missing required field: {name}", field=name)

            signature = data.get(SIGNATURE_FIELD) or self._header_signature(headers)
            if not signature:
                raise SignatureError("Missing signature")
            unsigned = {k: v for k, v in data.items() if k != SIGNATURE_FIELD}
            self.validator.verify_callback(unsigned, signature)

            callback = CallbackRequest.model_validate(data)
            callback.payment_status = map_callback_status(callback.status)
            await self._dispatch(callback)

            self.logger.info(
                "callback_processed",
                payment_id=callback.payment_id,
                status=callback.payment_status.value,
            )
            return CallbackAck(success=True, message="Callback processed successfully", payment_id=callback.payment_id)
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            self.logger.warning("callback_rejected", payment_id=payment_id, error=message)
            return CallbackAck(success=False, message=message, payment_id=payment_id, http_status=400)

    async def _dispatch(self, callback: CallbackRequest) -> None:
        handler = self._handlers.get(callback.payment_status)
        if handler is None:
            self.logger.warning(
                "callback_unhandled_status",
                payment_id=callback.payment_id,
                status=callback.status,
            )
            return
        result = handler(callback)
        if inspect.isawaitable(result):
            await result

    @staticmethod
    def _decode(payload: Union[Mapping[str, Any], bytes, str]) -> dict[str, Any]:
        if isinstance(payload, (bytes, bytearray, str)):
            try:
                payload = json.loads(payload)
            except ValueError as exc:
                raise ValidationError("Invalid JSON") from exc
        if not isinstance(payload, Mapping):
            raise ValidationError("Invalid callback payload")
        return dict(payload)

    @staticmethod
    def _header_signature(headers: Optional[Mapping[str, str]]) -> Optional[str]:
        if not headers:
            return None
        for key, value in headers.items():
            if key.lower() == SIGNATURE_HEADER:
                return value
        return None
