"""
Unit tests for app/services/payments.py.

The simulator is constructed with zero delay and a forced outcome so every
test is fast and deterministic.
Covers: order creation, success/failure paths, donation linkage, simulated
method details, aggregate updates and the awaited gateway delay.
"""
import asyncio
import re
from unittest.mock import AsyncMock, patch

import pytest

from app import models
from app.models import utcnow
from app.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    SimulatedPaymentFailure,
    ValidationError,
)
from app.services import payments as payments_module
from app.services.payments import (
    PROCESSOR_MAP,
    PaymentSimulator,
    VerifyResult,
    create_order,
    format_amount,
    verify_payment,
)
from tests.conftest import make_admin, make_user

SUCCEED = PaymentSimulator(delay=0, decide=lambda: True)
DECLINE = PaymentSimulator(delay=0, decide=lambda: False)


# ---------------------------------------------------------------------------
# Create order
# ---------------------------------------------------------------------------
class TestCreateOrder:
    def test_creates_payment_in_created_status(self, db):
        user = make_user(db)
        payment = create_order(db, user, 500, donation_type="meals", description="Festival drive")

        assert payment.status == "created"
        assert payment.currency == "INR"
        assert payment.amount == 500
        assert payment.user_id == user.id
        assert payment.donation_id is None
        assert payment.receipt_id is None
        assert re.fullmatch(r"ORD-[0-9A-Z]+-[0-9A-Z]{6}", payment.order_id)
        assert re.fullmatch(r"PAY-[0-9A-Z]+-[0-9A-Z]{6}", payment.payment_id)

    @pytest.mark.parametrize("amount", [None, 0, 0.5, -100])
    def test_amount_below_one_rejected(self, db, amount):
        user = make_user(db)
        with pytest.raises(ValidationError, match="at least"):
            create_order(db, user, amount)
        assert db.query(models.Payment).count() == 0

    def test_not_idempotent(self, db):
        user = make_user(db)
        first = create_order(db, user, 500)
        second = create_order(db, user, 500)
        assert first.order_id != second.order_id
        assert first.payment_id != second.payment_id
        assert db.query(models.Payment).count() == 2


# ---------------------------------------------------------------------------
# Verify: success
# ---------------------------------------------------------------------------
class TestVerifySuccess:
    async def test_upi_payment_creates_linked_completed_donation(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)

        result = await verify_payment(db, user, order.order_id, "upi", simulator=SUCCEED)
        payment, donation = result.payment, result.donation

        assert payment.status == "paid"
        assert payment.paid_at is not None
        assert payment.payment_method == "upi"
        assert payment.donation_id == donation.id
        assert re.fullmatch(rf"RCPT-{utcnow().year}-[0-9A-Z]{{8}}", payment.receipt_id)
        assert result.receipt_id == payment.receipt_id

        assert donation.type == "monetary"
        assert donation.amount == 500
        assert donation.status == "completed"
        assert donation.donor_id == user.id
        assert len(donation.timeline) == 1
        assert donation.timeline[0].title == "Payment Received"
        assert donation.timeline[0].status == "completed"
        assert donation.timeline[0].description == "₹500 received via upi"

    async def test_exactly_one_donation_created(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        await verify_payment(db, user, order.order_id, "card", simulator=SUCCEED)
        assert db.query(models.Donation).count() == 1

    async def test_link_persisted(self, db):
        user = make_user(db)
        order = create_order(db, user, 250)
        result = await verify_payment(db, user, order.order_id, "bank", simulator=SUCCEED)

        db.expire_all()
        stored = db.query(models.Payment).filter(models.Payment.order_id == order.order_id).one()
        assert stored.status == "paid"
        assert stored.donation is not None
        assert stored.donation.donation_id == result.donation.donation_id

    async def test_user_aggregates_incremented(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        await verify_payment(db, user, order.order_id, "upi", simulator=SUCCEED)

        db.refresh(user)
        assert user.donations_count == 1
        assert user.total_amount_donated == 500

    async def test_n_payments_sum_up(self, db):
        user = make_user(db)
        amounts = [100, 250.5, 1000]
        for amount in amounts:
            order = create_order(db, user, amount)
            await verify_payment(db, user, order.order_id, "card", simulator=SUCCEED)

        db.refresh(user)
        assert user.donations_count == len(amounts)
        assert user.total_amount_donated == pytest.approx(sum(amounts))

    async def test_purpose_and_notes_carried_from_order(self, db):
        user = make_user(db)
        order = create_order(db, user, 300, donation_type="fleet", description="New van")
        result = await verify_payment(db, user, order.order_id, "upi", simulator=SUCCEED)
        assert result.donation.purpose == "fleet"
        assert result.donation.notes == "New van"

    async def test_unknown_purpose_falls_back_to_general(self, db):
        user = make_user(db)
        order = create_order(db, user, 300, donation_type="monetary")
        result = await verify_payment(db, user, order.order_id, "upi", simulator=SUCCEED)
        assert result.donation.purpose == "general"


# ---------------------------------------------------------------------------
# Simulated method details
# ---------------------------------------------------------------------------
class TestSimulatedDetails:
    async def _pay(self, db, method):
        user = make_user(db)
        order = create_order(db, user, 100)
        result = await verify_payment(db, user, order.order_id, method, simulator=SUCCEED)
        return result.payment

    async def test_upi(self, db):
        payment = await self._pay(db, "upi")
        assert payment.simulated_details["upiId"] == "user@upi"
        assert re.fullmatch(r"[0-9A-Z]{16}", payment.simulated_details["transactionRef"])

    async def test_card(self, db):
        payment = await self._pay(db, "card")
        assert re.fullmatch(r"[1-9]\d{3}", payment.simulated_details["cardLast4"])
        assert "transactionRef" in payment.simulated_details

    async def test_bank(self, db):
        payment = await self._pay(db, "bank")
        assert payment.simulated_details["bankName"] == "Sample Bank"
        assert "transactionRef" in payment.simulated_details

    async def test_cash(self, db):
        payment = await self._pay(db, "cash")
        assert set(payment.simulated_details) == {"transactionRef"}

    async def test_unspecified_method_recorded_as_card_with_ref_only(self, db):
        payment = await self._pay(db, None)
        assert payment.payment_method == "card"
        assert set(payment.simulated_details) == {"transactionRef"}

    async def test_unspecified_method_still_described_as_card(self, db):
        user = make_user(db)
        order = create_order(db, user, 100)
        result = await verify_payment(db, user, order.order_id, None, simulator=SUCCEED)
        assert result.donation.payment_method == "card"
        assert result.donation.timeline[0].description == "₹100 received via card"
        assert "cardLast4" not in result.payment.simulated_details

    def test_processors_keyed_by_method_name(self):
        assert set(PROCESSOR_MAP) == {"upi", "card", "bank", "cash"}
        for method, processor in PROCESSOR_MAP.items():
            assert processor.method_name == method


# ---------------------------------------------------------------------------
# Verify: failure and guards
# ---------------------------------------------------------------------------
class TestVerifyFailure:
    async def test_decline_marks_failed_and_creates_nothing(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)

        with pytest.raises(SimulatedPaymentFailure):
            await verify_payment(db, user, order.order_id, "upi", simulator=DECLINE)

        db.expire_all()
        payment = db.query(models.Payment).filter(models.Payment.order_id == order.order_id).one()
        assert payment.status == "failed"
        assert payment.failed_at is not None
        assert payment.failure_reason == "Simulated payment failure"
        assert payment.donation_id is None
        assert payment.receipt_id is None
        assert db.query(models.Donation).count() == 0

        db.refresh(user)
        assert user.donations_count == 0
        assert user.total_amount_donated == 0

    async def test_failed_order_not_resumable(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        with pytest.raises(SimulatedPaymentFailure):
            await verify_payment(db, user, order.order_id, simulator=DECLINE)

        with pytest.raises(InvalidStateError):
            await verify_payment(db, user, order.order_id, simulator=SUCCEED)

    async def test_retry_with_new_order_succeeds(self, db):
        user = make_user(db)
        first = create_order(db, user, 500)
        with pytest.raises(SimulatedPaymentFailure):
            await verify_payment(db, user, first.order_id, simulator=DECLINE)

        second = create_order(db, user, 500)
        result = await verify_payment(db, user, second.order_id, simulator=SUCCEED)
        assert result.payment.status == "paid"

    async def test_paid_order_cannot_be_verified_twice(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        await verify_payment(db, user, order.order_id, simulator=SUCCEED)
        with pytest.raises(InvalidStateError):
            await verify_payment(db, user, order.order_id, simulator=SUCCEED)

        db.refresh(user)
        assert user.donations_count == 1

    async def test_unknown_order(self, db):
        user = make_user(db)
        with pytest.raises(NotFoundError):
            await verify_payment(db, user, "ORD-NOPE-000000", simulator=SUCCEED)

    async def test_other_users_order_forbidden(self, db):
        owner = make_user(db)
        stranger = make_user(db, email="stranger@example.com")
        order = create_order(db, owner, 500)
        with pytest.raises(ForbiddenError):
            await verify_payment(db, stranger, order.order_id, simulator=SUCCEED)

    async def test_admin_completion_credits_order_owner(self, db):
        owner = make_user(db)
        admin = make_admin(db)
        order = create_order(db, owner, 500)
        result = await verify_payment(db, admin, order.order_id, simulator=SUCCEED)
        assert result.donation.donor_id == owner.id

    async def test_concurrent_verifies_complete_order_once(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        slow = PaymentSimulator(delay=0.05, decide=lambda: True)

        results = await asyncio.gather(
            verify_payment(db, user, order.order_id, "upi", simulator=slow),
            verify_payment(db, user, order.order_id, "upi", simulator=slow),
            return_exceptions=True,
        )

        assert sum(isinstance(r, VerifyResult) for r in results) == 1
        assert sum(isinstance(r, InvalidStateError) for r in results) == 1
        assert db.query(models.Donation).count() == 1
        db.refresh(user)
        assert user.donations_count == 1
        assert user.total_amount_donated == 500

    async def test_order_claimed_as_attempted_during_charge(self, db):
        user = make_user(db)
        order = create_order(db, user, 500)
        seen = []

        def decide():
            seen.append(
                db.query(models.Payment.status)
                .filter(models.Payment.order_id == order.order_id)
                .scalar()
            )
            return True

        await verify_payment(db, user, order.order_id, simulator=PaymentSimulator(delay=0, decide=decide))
        assert seen == ["attempted"]

    async def test_fractional_amount_in_timeline(self, db):
        user = make_user(db)
        order = create_order(db, user, 250.5)
        result = await verify_payment(db, user, order.order_id, "bank", simulator=SUCCEED)
        assert result.donation.timeline[0].description == "₹250.5 received via bank"


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------
class TestSimulator:
    async def test_delay_is_awaited_before_outcome(self):
        order_of_calls = []
        sleep = AsyncMock(side_effect=lambda s: order_of_calls.append("sleep"))

        def decide():
            order_of_calls.append("decide")
            return True

        sim = PaymentSimulator(delay=1.5, decide=decide)
        with patch.object(payments_module.asyncio, "sleep", sleep):
            assert await sim.charge() is True

        sleep.assert_awaited_once_with(1.5)
        assert order_of_calls == ["sleep", "decide"]

    async def test_outcome_drawn_once_per_verification(self, db):
        calls = []
        sim = PaymentSimulator(delay=0, decide=lambda: calls.append(1) or True)
        user = make_user(db)
        for _ in range(3):
            order = create_order(db, user, 100)
            await verify_payment(db, user, order.order_id, simulator=sim)
        assert len(calls) == 3

    async def test_default_decision_uses_success_rate(self):
        sim = PaymentSimulator(delay=0)
        with patch.object(payments_module.random, "random", return_value=0.94):
            assert await sim.charge() is True
        with patch.object(payments_module.random, "random", return_value=0.95):
            assert await sim.charge() is False


class TestFormatAmount:
    @pytest.mark.parametrize("amount,expected", [
        (500, "500"),
        (500.0, "500"),
        (250.5, "250.5"),
        (99.99, "99.99"),
    ])
    def test_format(self, amount, expected):
        assert format_amount(amount) == expected
