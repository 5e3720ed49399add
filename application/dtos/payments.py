"""
Payment DTOs (Pydantic v2) used at application boundaries.

Amounts are integers in centimes throughout; gateway credentials never
appear here, the gateway client owns them.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.payment.entity import PaymentStatus, utcnow


ORDER_NUMBER_MAX_LENGTH = 10


class PaymentOrder(BaseModel):
    """Merchant payment intent. ``order_id`` is generated when omitted."""

    order_id: Optional[str] = Field(default=None, min_length=1, max_length=ORDER_NUMBER_MAX_LENGTH)
    amount: Optional[int] = Field(default=None, gt=0, description="Amount in centimes")
    currency: str = Field(default="DZD")
    description: Optional[str] = None
    return_url: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "DZD").strip().upper()
        if not (len(u) == 3 and (u.isalpha() or u.isdigit())):
            raise ValueError("currency must be ISO-4217 alpha-3 or numeric-3")
        return u


# Gateway-level requests (what the client serializes onto the wire)

class RegisterPaymentRequest(BaseModel):
    order_number: str = Field(max_length=ORDER_NUMBER_MAX_LENGTH)
    amount: int
    currency: str
    return_url: str
    fail_url: Optional[str] = None
    language: str = "fr"
    json_params: dict[str, Any] = Field(default_factory=dict)


class VerifyPaymentRequest(BaseModel):
    md_order: str
    language: str = "en"


class RefundPaymentRequest(BaseModel):
    order_id: str
    amount: int


# Results returned to callers

class PaymentResponse(BaseModel):
    success: bool
    payment_id: str
    payment_url: str
    order_id: str
    amount: int
    currency: str
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
    message: Optional[str] = None


class PaymentVerification(BaseModel):
    success: bool
    payment_id: str
    order_id: str
    status: PaymentStatus
    amount: int
    currency: str
    transaction_id: Optional[str] = None
    authorization_code: Optional[str] = None
    card_mask: Optional[str] = None
    payment_date: Optional[datetime] = None
    message: Optional[str] = None
    raw_response: Optional[dict[str, Any]] = None


class RefundResponse(BaseModel):
    success: bool
    refund_id: str
    payment_id: str
    amount: int
    status: PaymentStatus
    message: Optional[str] = None
    reason: Optional[str] = None
    refunded_at: datetime = Field(default_factory=utcnow)


class TransactionStatus(BaseModel):
    payment_id: str
    order_id: str
    status: PaymentStatus
    amount: int
    currency: str
    transaction_id: Optional[str] = None
    last_updated: datetime


class RefundCommand(BaseModel):
    """Body of the refund endpoint."""
    amount: int = Field(gt=0)
    reason: Optional[str] = None


# Callback (webhook) side

class CallbackRequest(BaseModel):
    """Inbound notification; unknown fields are kept as-is."""

    payment_id: str = Field(alias="paymentId")
    order_id: str = Field(alias="orderId")
    status: str
    amount: Union[int, float, str]
    currency: str
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    authorization_code: Optional[str] = Field(default=None, alias="authorizationCode")
    signature: Optional[str] = None
    timestamp: Optional[str] = None
    payment_status: Optional[PaymentStatus] = Field(default=None, exclude=True)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator(
        "status", "payment_id", "order_id", "currency", "transaction_id", "authorization_code", "timestamp",
        mode="before",
    )
    @classmethod
    def _coerce_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class CallbackAck(BaseModel):
    success: bool
    message: str
    payment_id: str = Field(alias="paymentId")
    http_status: int = Field(default=200, exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    def body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
