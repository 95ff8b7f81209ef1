"""
Simulated payment workflow.

create_order:
1. Validate amount >= 1
2. Mint orderId / paymentId, persist Payment(status=created)

verify_payment:
1. Fetch the order (must still be `created`) and claim it as `attempted`
2. Await the simulated gateway delay
3. Draw the outcome from the injected simulator
4. Failure -> status=failed, persist, raise SimulatedPaymentFailure
5. Success -> receipt, simulated method details, linked monetary Donation
   (status=completed), payment.donation_id, user aggregates; one commit so
   no reader sees `paid` without its donation link
"""
import asyncio
import logging
import random
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app import models
from app.config import CURRENCY, PAYMENT_SIMULATION_DELAY, PAYMENT_SUCCESS_RATE
from app.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    SimulatedPaymentFailure,
    ValidationError,
)
from app.models import DonationStatus, DonationType, PaymentStatus, Purpose, utcnow
from app.processors.bank import BankProcessor
from app.processors.card import CardProcessor
from app.processors.cash import CashProcessor
from app.processors.upi import UpiProcessor
from app.services import identifiers
from app.services.accounts import increment_user_totals

logger = logging.getLogger("feedindia.payments")


PROCESSOR_MAP = {
    p.method_name: p
    for p in (UpiProcessor(), CardProcessor(), BankProcessor(), CashProcessor())
}

# Used when the client names no method (or one we don't know)
FALLBACK_PROCESSOR = CashProcessor()

DEFAULT_METHOD = "card"
FAILURE_REASON = "Simulated payment failure"
PAYMENT_RECEIVED_TITLE = "Payment Received"


class PaymentSimulator:
    """
    Stand-in for a payment gateway: a fixed processing delay followed by an
    independent success draw per call.
    """

    def __init__(
        self,
        delay: float = PAYMENT_SIMULATION_DELAY,
        decide: Optional[Callable[[], bool]] = None,
    ):
        self.delay = delay
        self.decide = decide or (lambda: random.random() < PAYMENT_SUCCESS_RATE)

    async def charge(self) -> bool:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        return bool(self.decide())


_default_simulator = PaymentSimulator()


def get_payment_simulator() -> PaymentSimulator:
    """FastAPI dependency; overridden in tests to force outcomes."""
    return _default_simulator


class VerifyResult:
    def __init__(self, payment: models.Payment, donation: models.Donation):
        self.payment = payment
        self.donation = donation

    @property
    def receipt_id(self) -> str:
        return self.payment.receipt_id


def format_amount(amount: float) -> str:
    amount = float(amount)
    return str(int(amount)) if amount.is_integer() else repr(amount)


def _purpose(donation_type: Optional[str]) -> str:
    values = {p.value for p in Purpose}
    return donation_type if donation_type in values else Purpose.GENERAL.value


def create_order(
    db: Session,
    user: models.User,
    amount: Optional[float],
    donation_type: Optional[str] = None,
    description: Optional[str] = None,
) -> models.Payment:
    """
    Bookkeeping only: no money moves. Every call mints a new order.

    Raises:
        ValidationError: if amount is missing or below 1
    """
    if amount is None or amount < 1:
        raise ValidationError("Amount must be at least ₹1")

    payment = models.Payment(
        payment_id=identifiers.payment_id(),
        order_id=identifiers.order_id(),
        user_id=user.id,
        amount=amount,
        currency=CURRENCY,
        donation_type=donation_type,
        description=description,
        status=PaymentStatus.CREATED.value,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info("Order %s created for user %s (₹%s)", payment.order_id, user.id, format_amount(amount))
    return payment


async def verify_payment(
    db: Session,
    user: models.User,
    order_id: str,
    payment_method: Optional[str] = None,
    simulator: Optional[PaymentSimulator] = None,
) -> VerifyResult:
    """
    Complete a simulated charge for `order_id`.

    Raises:
        NotFoundError: if the order does not exist
        ForbiddenError: if the order belongs to another user
        InvalidStateError: if the order was already paid, failed or claimed
        SimulatedPaymentFailure: on the synthetic decline
    """
    simulator = simulator or _default_simulator

    payment = db.query(models.Payment).filter(models.Payment.order_id == order_id).first()
    if payment is None:
        raise NotFoundError("Payment order not found")
    if payment.user_id != user.id and not user.is_admin:
        raise ForbiddenError("Not authorized to complete this payment")
    if payment.status != PaymentStatus.CREATED.value:
        raise InvalidStateError(f"Payment order is already {payment.status}")

    # Claim the order before the delay; a concurrent verify finds nothing to claim
    claimed = (
        db.query(models.Payment)
        .filter(
            models.Payment.order_id == order_id,
            models.Payment.status == PaymentStatus.CREATED.value,
        )
        .update({models.Payment.status: PaymentStatus.ATTEMPTED.value}, synchronize_session=False)
    )
    db.commit()
    if not claimed:
        raise InvalidStateError("Payment order is already being processed")

    succeeded = await simulator.charge()

    if not succeeded:
        payment.status = PaymentStatus.FAILED.value
        payment.failed_at = utcnow()
        payment.failure_reason = FAILURE_REASON
        db.commit()
        logger.warning("Order %s failed: %s", payment.order_id, FAILURE_REASON)
        raise SimulatedPaymentFailure("Payment failed. Please try again.")

    # Details follow the method the client named; only the recorded method defaults
    requested = getattr(payment_method, "value", payment_method)
    processor = PROCESSOR_MAP.get(requested, FALLBACK_PROCESSOR)
    method = requested or DEFAULT_METHOD
    now = utcnow()

    payment.status = PaymentStatus.PAID.value
    payment.paid_at = now
    payment.receipt_id = identifiers.receipt_id()
    payment.payment_method = method
    payment.simulated_details = processor.simulated_details()

    donation = models.Donation(
        donation_id=identifiers.donation_id(db),
        donor_id=payment.user_id,
        type=DonationType.MONETARY.value,
        amount=payment.amount,
        payment_method=method,
        purpose=_purpose(payment.donation_type),
        notes=payment.description,
    )
    donation.record_status(
        DonationStatus.COMPLETED.value,
        PAYMENT_RECEIVED_TITLE,
        f"₹{format_amount(payment.amount)} received via {method}",
        timestamp=now,
    )
    db.add(donation)
    db.flush()

    payment.donation_id = donation.id
    increment_user_totals(db, payment.user_id, payment.amount)

    db.commit()
    db.refresh(payment)
    db.refresh(donation)
    logger.info(
        "Order %s paid via %s, receipt %s, donation %s",
        payment.order_id, method, payment.receipt_id, donation.donation_id,
    )
    return VerifyResult(payment, donation)


def list_payments_for(db: Session, user: models.User, page: int = 1, limit: int = 10) -> Tuple[List[models.Payment], int]:
    query = db.query(models.Payment).filter(models.Payment.user_id == user.id)
    total = query.count()
    payments = (
        query.order_by(models.Payment.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return payments, total


def get_payment_for(db: Session, payment_pk: str, user: models.User) -> models.Payment:
    payment = db.query(models.Payment).filter(models.Payment.id == payment_pk).first()
    if payment is None:
        raise NotFoundError("Payment not found")
    if payment.user_id != user.id and not user.is_admin:
        raise ForbiddenError("Not authorized to view this payment")
    return payment
