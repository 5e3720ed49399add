"""
API依赖项 - payment service and callback processor providers

Routes receive their collaborators through ``Depends`` so tests can swap them
with ``app.dependency_overrides``.
"""
from functools import lru_cache
from typing import AsyncIterator

from application.services.callback_service import CallbackProcessor
from application.services.payment_service import PaymentService
from core.config import get_settings
from infrastructure.external.payments import get_payment_gateway


async def get_payment_service() -> AsyncIterator[PaymentService]:
    """One gateway client per request, closed once the response is sent."""
    settings = get_settings()
    service = PaymentService(gateway=get_payment_gateway(settings.satim), settings=settings.satim)
    try:
        yield service
    finally:
        await service.aclose()


@lru_cache
def get_callback_processor() -> CallbackProcessor:
    """Process-wide processor; register handlers on it at startup."""
    settings = get_settings()
    return CallbackProcessor(settings.satim.secret_key.get_secret_value())
