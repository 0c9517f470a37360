"""Payment REST API.

POST /payments/orders     — open a Razorpay order for a won bid
POST /payments/confirm    — checkout callback; verifies the signature
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_for
from src.bm_gateway.auth.dependencies import get_current_principal
from src.bm_gateway.auth.principal import Principal
from src.bm_payment.application.schemas import ConfirmPaymentRequest, CreatePaymentOrderRequest
from src.bm_payment.application.service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])
_service = PaymentService()


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_payment_order(
    body: CreatePaymentOrderRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_payment_order(db, principal, body.bid_id)
    return success_for(request, result.to_json_dict())


@router.post("/confirm")
async def confirm_payment(
    body: ConfirmPaymentRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.confirm_payment(
        db,
        principal,
        body.razorpay_order_id,
        body.razorpay_payment_id,
        body.razorpay_signature,
    )
    return success_for(request, result.to_json_dict())
