"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

from application.ports.payment_gateway import PaymentGateway
from core.config import SatimSettings, get_settings


def get_payment_gateway(settings: Optional[SatimSettings] = None, **kwargs) -> PaymentGateway:
    from .satim_client import SatimClient

    return SatimClient(settings or get_settings().satim, **kwargs)
