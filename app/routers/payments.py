from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models
from app.auth import get_current_user
from app.config import CURRENCY
from app.database import get_db
from app.routers.common import PageParams, page_params
from app.schemas.requests import CreateOrderRequest, VerifyPaymentRequest
from app.schemas.responses import (
    OrderInfo,
    OrderResponse,
    PaymentOut,
    PaymentPage,
    PaymentReceipt,
    PaymentResponse,
    VerifyResponse,
)
from app.services import payments
from app.services.payments import PaymentSimulator, get_payment_simulator

router = APIRouter()


@router.post("/create-order", response_model=OrderResponse, status_code=201)
def create_order(
    request: CreateOrderRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a simulated payment order. Not idempotent: every call mints a new orderId."""
    payment = payments.create_order(
        db, user, request.amount, request.donation_type, request.description
    )
    return OrderResponse(
        message="Payment order created",
        order=OrderInfo(id=payment.order_id, amount=payment.amount, currency=CURRENCY),
        order_id=payment.order_id,
        payment_id=payment.payment_id,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify(
    request: VerifyPaymentRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    """
    Complete a simulated payment.

    Waits out the simulated gateway delay, then either marks the order
    failed (400) or marks it paid and creates the linked completed
    monetary donation before responding.
    """
    result = await payments.verify_payment(
        db, user, request.order_id, request.payment_method, simulator=simulator
    )
    payment = result.payment
    return VerifyResponse(
        message="Payment successful! Thank you for your donation.",
        receipt_id=payment.receipt_id,
        payment=PaymentReceipt(
            id=payment.payment_id,
            amount=payment.amount,
            donation_id=result.donation.donation_id,
            receipt_id=payment.receipt_id,
            method=payment.payment_method,
        ),
    )


@router.get("", response_model=PaymentPage)
def my_payments(
    paging: PageParams = Depends(page_params),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, total = payments.list_payments_for(db, user, paging.page, paging.limit)
    return PaymentPage(
        payments=[PaymentOut.model_validate(p) for p in items],
        **paging.meta(len(items), total),
    )


@router.get("/{payment_pk}", response_model=PaymentResponse)
def get_payment(
    payment_pk: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    payment = payments.get_payment_for(db, payment_pk, user)
    return PaymentResponse(payment=PaymentOut.model_validate(payment))
