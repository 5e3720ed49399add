"""
SATIM (CIB / Edahabia) adapter over the gateway's REST endpoints.

Notes on the wire contract:
- register.do is a form POST; acknowledgeTransaction.do and refund.do are GETs
  with credentials in the query string.
- register/refund answer with ``errorCode``/``errorMessage``; acknowledge
  answers with capitalised ``ErrorCode``/``ErrorMessage``.
- Amounts are integer centimes on every endpoint, refunds included.
"""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from application.dtos.payments import (
    RefundPaymentRequest,
    RegisterPaymentRequest,
    VerifyPaymentRequest,
)
from core.config import SatimSettings
from domain.common.exceptions import (
    GatewayAPIError,
    GatewayProtocolError,
    PaymentNotFoundError,
    ValidationError,
)
from infrastructure.external.payments.base import BasePaymentClient
from shared.codes.payment_codes import (
    AMOUNT_STEP,
    API_ENDPOINTS,
    GATEWAY_SUCCESS,
    GATEWAY_UNREGISTERED_ORDER,
    MIN_AMOUNT,
    MIN_REFUND_AMOUNT,
    GatewayEndpoint,
    gateway_error_message,
    refund_error_hint,
)


class SatimClient(BasePaymentClient):
    provider = "satim"

    def __init__(
        self,
        settings: Optional[SatimSettings] = None,
        *,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Any = None,
    ) -> None:
        if settings is not None:
            base_url = base_url or settings.base_url
            user, secret = settings.credentials
            username = username or user
            password = password or secret
            timeout = timeout or settings.http_timeout()
        if not base_url or not username or not password:
            raise ValueError("SatimClient requires base_url, username and password")
        super().__init__(base_url=base_url, timeout=timeout, transport=transport, logger=logger)
        self._username = username
        self._password = password

    def _auth(self) -> dict[str, str]:
        return {"userName": self._username, "password": self._password}

    async def register_payment(self, req: RegisterPaymentRequest) -> dict[str, Any]:
        self.logger.info("satim_register_request", order_number=req.order_number, amount=req.amount)
        if req.amount < MIN_AMOUNT:
            raise ValidationError("Amount must be at least 5000 centimes (50 DA)", field="amount")
        if req.amount % AMOUNT_STEP != 0:
            raise ValidationError("Amount must be a multiple of 100 centimes", field="amount")

        form: dict[str, Any] = {
            **self._auth(),
            "orderNumber": req.order_number,
            "amount": str(req.amount),
            "currency": req.currency,
            "returnUrl": req.return_url,
        }
        if req.fail_url:
            form["failUrl"] = req.fail_url
        form["language"] = req.language
        form["jsonParams"] = json.dumps(req.json_params, separators=(",", ":"))

        data = await self._send(
            "POST",
            API_ENDPOINTS[GatewayEndpoint.REGISTER],
            operation="register_payment",
            data=form,
        )
        code = str(data.get("errorCode"))
        if code != GATEWAY_SUCCESS:
            message = gateway_error_message(GatewayEndpoint.REGISTER, code, data.get("errorMessage"))
            self.logger.error("satim_register_failed", order_number=req.order_number, error_code=code)
            raise GatewayAPIError(f"Payment registration failed: {message}", gateway_code=code)
        if not data.get("orderId") or not data.get("formUrl"):
            self.logger.error("satim_register_incomplete", order_number=req.order_number, keys=sorted(data))
            raise GatewayProtocolError(
                "Payment registration failed: Missing orderId or formUrl in response",
                gateway_code=code,
            )
        self.logger.info("satim_register_ok", order_number=req.order_number, payment_id=data["orderId"])
        return data

    async def verify_payment(self, req: VerifyPaymentRequest) -> dict[str, Any]:
        self.logger.info("satim_verify_request", payment_id=req.md_order)
        data = await self._send(
            "GET",
            API_ENDPOINTS[GatewayEndpoint.ACKNOWLEDGE],
            operation="verify_payment",
            params={**self._auth(), "mdOrder": req.md_order, "language": req.language},
        )
        code = str(data.get("ErrorCode"))
        if code != GATEWAY_SUCCESS:
            message = gateway_error_message(GatewayEndpoint.ACKNOWLEDGE, code, data.get("ErrorMessage"))
            self.logger.error("satim_verify_failed", payment_id=req.md_order, error_code=code)
            if code == GATEWAY_UNREGISTERED_ORDER:
                raise PaymentNotFoundError(
                    req.md_order,
                    message=f"Payment verification failed: {message}",
                    gateway_code=code,
                )
            raise GatewayAPIError(f"Payment verification failed: {message}", gateway_code=code)
        self.logger.info(
            "satim_verify_ok",
            payment_id=req.md_order,
            order_status=data.get("OrderStatus"),
            order_number=data.get("OrderNumber"),
        )
        return data

    async def refund_payment(self, req: RefundPaymentRequest) -> dict[str, Any]:
        self.logger.info("satim_refund_request", payment_id=req.order_id, amount=req.amount)
        if req.amount < MIN_REFUND_AMOUNT:
            raise ValidationError("Refund amount must be at least 100 centimes (1.00 DZD)", field="amount")
        if req.amount % AMOUNT_STEP != 0:
            raise ValidationError("Refund amount must be a multiple of 100 centimes", field="amount")

        data = await self._send(
            "GET",
            API_ENDPOINTS[GatewayEndpoint.REFUND],
            operation="refund_payment",
            params={**self._auth(), "orderId": req.order_id, "amount": str(req.amount)},
        )
        code = str(data.get("errorCode"))
        if code != GATEWAY_SUCCESS:
            message = gateway_error_message(GatewayEndpoint.REFUND, code, data.get("errorMessage"))
            hint = refund_error_hint(code)
            if hint:
                message = f"{message.rstrip('.')}. {hint}"
            self.logger.error("satim_refund_failed", payment_id=req.order_id, error_code=code)
            if code == GATEWAY_UNREGISTERED_ORDER:
                raise PaymentNotFoundError(req.order_id, message=f"Refund failed: {message}", gateway_code=code)
            raise GatewayAPIError(f"Refund failed: {message}", gateway_code=code)
        self.logger.info("satim_refund_ok", payment_id=req.order_id)
        return data
