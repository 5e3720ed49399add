"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port and DTOs.
Gateway implementations are provided by infrastructure and must be injected
from the composition root (API/tests), keeping dependencies one-way.
"""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from application.dtos.payments import (
    PaymentOrder,
    PaymentResponse,
    PaymentVerification,
    RefundPaymentRequest,
    RefundResponse,
    RegisterPaymentRequest,
    TransactionStatus,
    VerifyPaymentRequest,
)
from application.ports.payment_gateway import PaymentGateway
from application.utils.payments import generate_order_id, generate_refund_id, to_gateway_currency
from core.config import SatimSettings
from core.logging_config import get_logger
from domain.common.exceptions import GatewayTimeoutError, ValidationError
from domain.payment.entity import PaymentStatus, utcnow
from domain.services.status_mapper import describe_order_status, map_order_status
from shared.codes.payment_codes import CURRENCY_DZD, GATEWAY_SUCCESS


DESCRIPTION_TAG_LENGTH = 20


def _parse_expiration(value: Any) -> Optional[datetime]:
    """``YYYYMM`` card expiry → first day of that month (UTC)."""
    text = str(value or "").strip()
    if len(text) < 6 or not text[:6].isdigit():
        return None
    try:
        return datetime(int(text[:4]), int(text[4:6]), 1, tzinfo=timezone.utc)
    except ValueError:
        return None


def _opt_str(value: Any) -> Optional[str]:
    return None if value in (None, "") else str(value)


def _as_amount(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class PaymentService:
    def __init__(self, gateway: PaymentGateway, settings: SatimSettings, logger: Any = None) -> None:
        self.gateway = gateway
        self.settings = settings
        self.logger = logger or get_logger(__name__)

    async def create_payment(self, order: PaymentOrder) -> PaymentResponse:
        order_number = order.order_id or generate_order_id()
        self.logger.info("payment_create_request", order_id=order_number, amount=order.amount)
        if order.amount is None:
            raise ValidationError("Amount is required", field="amount")
        return_url = order.return_url or self.settings.return_url
        if not return_url:
            raise ValidationError("Return URL is required", field="return_url")

        request = RegisterPaymentRequest(
            order_number=order_number,
            amount=order.amount,
            currency=to_gateway_currency(order.currency),
            return_url=return_url,
            fail_url=order.return_url or self.settings.fail_url,
            language="fr",
            json_params={
                "force_terminal_id": self.settings.terminal_id,
                "udf1": (order.description or "")[:DESCRIPTION_TAG_LENGTH] or order_number,
            },
        )
        data = await self.gateway.register_payment(request)
        created_at = utcnow()
        response = PaymentResponse(
            success=True,
            payment_id=str(data["orderId"]),
            payment_url=str(data["formUrl"]),
            order_id=order_number,
            amount=order.amount,
            currency=request.currency,
            status=PaymentStatus.PENDING,
            created_at=created_at,
            expires_at=created_at + timedelta(milliseconds=self.settings.payment_session_timeout),
            message="Payment registered successfully",
        )
        self.logger.info("payment_create_response", order_id=order_number, payment_id=response.payment_id)
        return response

    async def verify_payment(self, payment_id: str) -> PaymentVerification:
        self.logger.info("payment_verify_request", payment_id=payment_id)
        data = await self.gateway.verify_payment(VerifyPaymentRequest(md_order=payment_id, language="en"))
        status = map_order_status(data.get("OrderStatus"))
        verification = PaymentVerification(
            success=str(data.get("ErrorCode")) == GATEWAY_SUCCESS,
            payment_id=payment_id,
            order_id=str(data.get("OrderNumber") or payment_id),
            status=status,
            amount=_as_amount(data.get("Amount")),
            currency=str(data.get("currency") or CURRENCY_DZD),
            transaction_id=_opt_str(data.get("approvalCode")),
            authorization_code=_opt_str(data.get("authorizationResponseId")),
            card_mask=_opt_str(data.get("Pan")),
            payment_date=_parse_expiration(data.get("expiration")),
            message=_opt_str(
                data.get("actionCodeDescription")
                or data.get("ErrorMessage")
                or describe_order_status(data.get("OrderStatus"))
            ),
            raw_response=data,
        )
        self.logger.info("payment_verify_response", payment_id=payment_id, status=status.value)
        return verification

    async def refund_payment(self, payment_id: str, amount: int, reason: Optional[str] = None) -> RefundResponse:
        self.logger.info("payment_refund_request", payment_id=payment_id, amount=amount, reason=reason)
        data = await self.gateway.refund_payment(RefundPaymentRequest(order_id=payment_id, amount=amount))
        refunded = str(data.get("errorCode")) == GATEWAY_SUCCESS
        response = RefundResponse(
            success=refunded,
            refund_id=generate_refund_id(payment_id),
            payment_id=payment_id,
            amount=amount,
            status=PaymentStatus.REFUNDED if refunded else PaymentStatus.FAILED,
            message=_opt_str(data.get("errorMessage")) or "Refund processed successfully",
            reason=reason,
        )
        self.logger.info("payment_refund_response", payment_id=payment_id, refund_id=response.refund_id)
        return response

    async def wait_for_payment(
        self,
        payment_id: str,
        timeout_ms: int = 300000,
        interval_ms: int = 5000,
    ) -> PaymentVerification:
        """Poll until the payment leaves PENDING; verification errors propagate."""
        deadline = time.monotonic() + timeout_ms / 1000
        while True:
            verification = await self.verify_payment(payment_id)
            if verification.status is not PaymentStatus.PENDING:
                return verification
            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(interval_ms / 1000)
        self.logger.warning("payment_wait_timeout", payment_id=payment_id, timeout_ms=timeout_ms)
        raise GatewayTimeoutError("Payment verification timeout", details={"payment_id": payment_id})

    async def get_transaction_status(self, payment_id: str) -> TransactionStatus:
        verification = await self.verify_payment(payment_id)
        return TransactionStatus(
            payment_id=verification.payment_id,
            order_id=verification.order_id,
            status=verification.status,
            amount=verification.amount,
            currency=verification.currency,
            transaction_id=verification.transaction_id,
            last_updated=utcnow(),
        )

    async def is_payment_successful(self, payment_id: str) -> bool:
        verification = await self.verify_payment(payment_id)
        return verification.status is PaymentStatus.SUCCESS

    async def is_payment_pending(self, payment_id: str) -> bool:
        verification = await self.verify_payment(payment_id)
        return verification.status is PaymentStatus.PENDING

    async def aclose(self) -> None:
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
