"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
Each method returns the gateway's raw payload (exact wire field names) once
the gateway reported success, and raises a taxonomy error otherwise.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.payments import (
    RefundPaymentRequest,
    RegisterPaymentRequest,
    VerifyPaymentRequest,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the three SATIM operations.

    Implementations should be async and side-effect free beyond IO.
    """

    provider: str

    async def register_payment(self, req: RegisterPaymentRequest) -> dict[str, Any]: ...

    async def verify_payment(self, req: VerifyPaymentRequest) -> dict[str, Any]: ...

    async def refund_payment(self, req: RefundPaymentRequest) -> dict[str, Any]: ...

    async def aclose(self) -> None: ...
