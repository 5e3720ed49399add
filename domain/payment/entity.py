"""
支付领域值对象 - internal payment status vocabulary
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    """Closed set of internal payment states."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"

    @property
    def is_final(self) -> bool:
        return self is not PaymentStatus.PENDING


class Environment(str, Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
