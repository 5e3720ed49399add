"""
Small helpers shared by the payment services and the SATIM adapter.
"""
from __future__ import annotations

import random
import re
import time
import uuid
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from domain.common.exceptions import ConfigurationError
from domain.payment.entity import ensure_utc, utcnow
from shared.codes.payment_codes import CURRENCY_CODES, CURRENCY_DZD


SENSITIVE_KEYS = frozenset({
    "password",
    "secretkey",
    "secret_key",
    "authorization",
    "token",
    "cardnumber",
    "card_number",
    "cvv",
    "signature",
})
REDACTED = "***REDACTED***"

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_order_id(prefix: str = "ORD") -> str:
    """SATIM order numbers are limited to 10 chars: prefix(3) + ms tail(4) + random(3)."""
    timestamp = str(_epoch_ms())[-4:]
    suffix = f"{random.randint(0, 999):03d}"
    return f"{prefix[:3]}{timestamp}{suffix}"


def generate_transaction_id() -> str:
    return f"TXN_{_epoch_ms()}_{uuid.uuid4().hex[:8]}"


def generate_refund_id(payment_id: str) -> str:
    return f"REFUND-{payment_id}-{_epoch_ms()}"


def to_gateway_currency(currency: Optional[str]) -> str:
    """Alphabetic DZD becomes the gateway's numeric code; other values pass through."""
    if not currency:
        return CURRENCY_DZD
    code = currency.strip().upper()
    return CURRENCY_CODES.get(code, code)


def centimes_to_amount(centimes: int) -> float:
    return centimes / 100


def validate_amount(amount: Any) -> bool:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return amount > 0 and amount != float("inf")


def validate_currency(currency: str) -> bool:
    return bool(currency) and bool(_CURRENCY_RE.match(currency))


def mask_card_number(card_number: Optional[str]) -> str:
    if not card_number or len(card_number) < 4:
        return "****"
    return f"****{card_number[-4:]}"


def is_https(url: str) -> bool:
    return url.lower().startswith("https://")


def ensure_https(url: str) -> None:
    if not is_https(url):
        raise ConfigurationError(f"URL must use HTTPS: {url}")


def validate_url(url: str) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return bool(parsed.scheme) and bool(parsed.netloc)


def is_expired(timestamp: datetime, timeout_ms: int) -> bool:
    return utcnow() > ensure_utc(timestamp) + timedelta(milliseconds=timeout_ms)


def sanitize_for_logging(data: Optional[Mapping[str, Any]]) -> Optional[dict[str, Any]]:
    """Shallow copy with credentials and signatures replaced."""
    if not data:
        return None if data is None else {}
    return {
        key: (REDACTED if str(key).lower() in SENSITIVE_KEYS and value else value)
        for key, value in data.items()
    }
