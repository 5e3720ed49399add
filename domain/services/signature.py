"""
HMAC-SHA256 signing and verification for SATIM callback payloads.

Canonical form: keys sorted lexicographically, ``key=value`` pairs joined
with ``&``. The digest is rendered as uppercase hex.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Any, Mapping

from domain.common.exceptions import SignatureError


SIGNATURE_FIELD = "signature"


def _render(value: Any) -> str:
    # Match the gateway's string coercion for booleans and nulls
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def canonicalize(payload: Mapping[str, Any]) -> str:
    return "&".join(f"{key}={_render(payload[key])}" for key in sorted(payload))


class SignatureValidator:
    """Signs and verifies flat payloads with the shared gateway secret."""

    def __init__(self, secret_key: str) -> None:
        self._secret = (secret_key or "").encode("utf-8")

    def generate_signature(self, payload: Mapping[str, Any]) -> str:
        data = canonicalize(payload).encode("utf-8")
        return hmac.new(self._secret, data, hashlib.sha256).hexdigest().upper()

    def verify_signature(self, payload: Mapping[str, Any], received_signature: Any) -> bool:
        """Constant-time check of ``received_signature``; never raises."""
        try:
            unsigned = {k: v for k, v in payload.items() if k != SIGNATURE_FIELD}
            expected = self.generate_signature(unsigned)
            if not isinstance(received_signature, str) or len(received_signature) != len(expected):
                return False
            return hmac.compare_digest(expected.encode("utf-8"), received_signature.encode("utf-8"))
        except Exception:
            return False

    def verify_callback(self, callback_data: Mapping[str, Any], signature: str | None) -> None:
        if not signature:
            raise SignatureError("Missing signature in callback")
        payload = {k: v for k, v in callback_data.items() if k != SIGNATURE_FIELD}
        if not self.verify_signature(payload, signature):
            # field names only, the signature itself stays out of the error
            raise SignatureError("Invalid signature", details={"payload": list(payload.keys())})

    def sign_request(
        self,
        terminal_id: str,
        order_id: str,
        amount: int,
        currency: str,
        timestamp: str,
    ) -> str:
        return self.generate_signature(
            {
                "terminalId": terminal_id,
                "orderId": order_id,
                "amount": str(amount),
                "currency": currency,
                "timestamp": timestamp,
            }
        )


def hash_data(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def generate_random_string(length: int = 32) -> str:
    return secrets.token_hex(length)
