"""
Payments API routes.

Thin glue over PaymentService and CallbackProcessor: no gateway details here.
Taxonomy errors raised by the service are rendered by the global handlers.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_callback_processor, get_payment_service
from application.dtos.payments import PaymentOrder, RefundCommand
from application.services.callback_service import CallbackProcessor
from application.services.payment_service import PaymentService
from core.response import success_response


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/callback", summary="SATIM payment notification")
async def payment_callback(
    request: Request,
    processor: CallbackProcessor = Depends(get_callback_processor),
):
    raw_body = await request.body()
    ack = await processor.process(raw_body, headers=dict(request.headers))
    return JSONResponse(content=ack.body(), status_code=ack.http_status)


@router.post("", summary="Register payment", response_model=None)
async def create_payment(
    payload: PaymentOrder,
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.create_payment(payload)
    return success_response(data=payment.model_dump(mode="json"), message=payment.message or "Success")


@router.get("/{payment_id}", summary="Verify payment")
async def verify_payment(
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    verification = await service.verify_payment(payment_id)
    return success_response(
        data=verification.model_dump(mode="json", exclude={"raw_response"}),
        message=verification.message or "Success",
    )


@router.get("/{payment_id}/status", summary="Transaction status")
async def transaction_status(
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    status = await service.get_transaction_status(payment_id)
    return success_response(data=status.model_dump(mode="json"))


@router.post("/{payment_id}/refund", summary="Refund payment")
async def refund_payment(
    payment_id: str,
    payload: RefundCommand,
    service: PaymentService = Depends(get_payment_service),
):
    result = await service.refund_payment(payment_id, payload.amount, reason=payload.reason)
    return success_response(data=result.model_dump(mode="json"), message=result.message or "Success")
