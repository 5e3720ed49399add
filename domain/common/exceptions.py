"""Business exception taxonomy shared by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; the domain must not depend on core.
No exception here may carry credentials or signatures in ``details``.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from shared.codes import BusinessCode
from shared.codes.payment_codes import (
    GATEWAY_INVALID_PARAMETER,
    GATEWAY_MISSING_PARAMETER,
    GATEWAY_UNREGISTERED_ORDER,
    PaymentCode,
)


class BusinessException(Exception):
    """业务异常基类"""

    status_code: Optional[int] = None
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.error_type,
            "message": self.message,
            "code": int(self.code),
            "status_code": self.status_code,
            "details": self.details,
        }


class ConfigurationError(BusinessException):
    """Invalid setup. Never retried."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.CONFIGURATION_ERROR,
            message=message,
            error_type="ConfigurationError",
            details=details,
        )


class ValidationError(BusinessException):
    """Bad caller input; the caller must fix and resubmit."""

    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="ValidationError",
            details=details,
            field=field,
        )


class SatimError(BusinessException):
    """Root of the gateway failure family; carries the gateway's own error code."""

    def __init__(
        self,
        message: str,
        *,
        code: int = PaymentCode.PROVIDER_ERROR,
        error_type: str = "SatimError",
        gateway_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        self.gateway_code = gateway_code
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=details,
            status_code=status_code,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["gateway_code"] = self.gateway_code
        return data


class GatewayAPIError(SatimError):
    """The gateway answered with a non-success business code."""

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        gateway_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(
            message,
            code=PaymentCode.PROVIDER_ERROR,
            error_type="APIError",
            gateway_code=gateway_code,
            status_code=status_code,
            details=details,
        )


class GatewayProtocolError(GatewayAPIError):
    """The gateway claimed success but the payload is unusable (missing fields, not JSON)."""

    def __init__(self, message: str, *, gateway_code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, gateway_code=gateway_code, details=details)
        self.code = PaymentCode.PROVIDER_PROTOCOL_ERROR


class SignatureError(SatimError):
    """Callback authenticity check failed. Always rejected."""

    status_code = 401

    def __init__(self, message: str = "Invalid signature", *, details: Optional[dict] = None):
        super().__init__(
            message,
            code=PaymentCode.SIGNATURE_ERROR,
            error_type="SignatureError",
            gateway_code=GATEWAY_INVALID_PARAMETER,
            details=details,
        )


class PaymentNotFoundError(SatimError):
    status_code = 404

    def __init__(self, payment_id: str, *, message: Optional[str] = None, gateway_code: Optional[str] = None):
        super().__init__(
            message or f"Payment not found: {payment_id}",
            code=PaymentCode.PAYMENT_NOT_FOUND,
            error_type="PaymentNotFoundError",
            gateway_code=gateway_code or GATEWAY_MISSING_PARAMETER,
            details={"payment_id": payment_id},
        )


class PaymentExpiredError(SatimError):
    status_code = 410

    def __init__(self, payment_id: str, *, message: Optional[str] = None):
        super().__init__(
            message or f"Payment expired: {payment_id}",
            code=PaymentCode.PAYMENT_EXPIRED,
            error_type="PaymentExpiredError",
            gateway_code="TIMEOUT",
            details={"payment_id": payment_id},
        )


class NetworkError(SatimError):
    """No response reached us. Safe to retry with backoff."""

    status_code = 503
    retryable = True

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            message,
            code=PaymentCode.NETWORK_ERROR,
            error_type="NetworkError",
            gateway_code="NETWORK_ERROR",
            details=details,
        )


class GatewayTimeoutError(SatimError):
    """A request or a polling wait exceeded its budget. Safe to retry once."""

    status_code = 408
    retryable = True

    def __init__(self, message: str = "Request timeout", *, details: Optional[dict] = None):
        super().__init__(
            message,
            code=PaymentCode.TIMEOUT,
            error_type="TimeoutError",
            gateway_code="TIMEOUT",
            details=details,
        )


def parse_gateway_error(response: Optional[Mapping[str, Any]]) -> SatimError:
    """Build the matching taxonomy error from an arbitrary gateway error payload."""
    response = response or {}
    gateway_code = str(response.get("errorCode") or response.get("ErrorCode") or "SERVER_ERROR")
    message = (
        response.get("message")
        or response.get("errorMessage")
        or response.get("ErrorMessage")
        or "Unknown error occurred"
    )
    reference = str(response.get("paymentId") or response.get("orderId") or "unknown")

    if gateway_code == GATEWAY_INVALID_PARAMETER:
        return SignatureError(message)
    if gateway_code in {GATEWAY_MISSING_PARAMETER, GATEWAY_UNREGISTERED_ORDER}:
        return PaymentNotFoundError(reference, gateway_code=gateway_code)
    if gateway_code == "TIMEOUT":
        return PaymentExpiredError(reference)
    if gateway_code == "NETWORK_ERROR":
        return NetworkError(message)
    status = response.get("statusCode")
    return GatewayAPIError(
        message,
        gateway_code=gateway_code,
        status_code=status if isinstance(status, int) else None,
    )
