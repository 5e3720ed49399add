"""
Gateway status vocabularies → internal PaymentStatus.

SATIM reports status two different ways: callback notifications carry a
status string, the acknowledge endpoint carries a numeric OrderStatus.
Both mappers are pure and total over their input.
"""
from __future__ import annotations

from typing import Any

from domain.payment.entity import PaymentStatus
from shared.codes.payment_codes import CALLBACK_STATUS_TO_INTERNAL, ORDER_STATUS_DESCRIPTIONS


def map_callback_status(value: Any) -> PaymentStatus:
    """Map a callback status string; anything unknown is treated as FAILED."""
    if value is None:
        return PaymentStatus.FAILED
    mapped = CALLBACK_STATUS_TO_INTERNAL.get(str(value).strip())
    if mapped is None:
        return PaymentStatus.FAILED
    return PaymentStatus(mapped)


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def map_order_status(order_status: Any) -> PaymentStatus:
    """Map the acknowledge endpoint's numeric OrderStatus; absent or unknown is PENDING."""
    code = _as_int(order_status)
    if code in (1, 2, 11):
        return PaymentStatus.SUCCESS
    if code == 4:
        return PaymentStatus.REFUNDED
    if code in (6, -1):
        return PaymentStatus.FAILED
    if code == 3:
        return PaymentStatus.CANCELLED
    return PaymentStatus.PENDING


def describe_order_status(order_status: Any) -> str | None:
    code = _as_int(order_status)
    return ORDER_STATUS_DESCRIPTIONS.get(0 if code is None else code)
