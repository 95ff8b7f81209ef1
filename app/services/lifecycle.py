"""
Donation lifecycle engine.

Owns the status state machine and the append-only timeline:

  create      -> status=pending, timeline=[Donation Received]
  transition  -> (admin) any status may follow any other; always appends
  cancel      -> (owner or admin) only from pending / pickup-scheduled
  track       -> public lookup by donationId

Every status change goes through Donation.record_status, so the last
timeline entry always carries the current status.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app import models
from app.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from app.models import DonationStatus, DonationType, utcnow
from app.services import identifiers
from app.services.accounts import increment_user_totals

logger = logging.getLogger("feedindia.donations")


STATUS_TITLES = {
    DonationStatus.PENDING: "Donation Pending",
    DonationStatus.PICKUP_SCHEDULED: "Pickup Scheduled",
    DonationStatus.IN_TRANSIT: "In Transit",
    DonationStatus.QUALITY_CHECK: "Quality Check",
    DonationStatus.DELIVERED: "Delivered",
    DonationStatus.COMPLETED: "Completed",
    DonationStatus.CANCELLED: "Cancelled",
}

_missing = set(DonationStatus) - set(STATUS_TITLES)
if _missing:
    raise RuntimeError(f"No timeline title for statuses: {sorted(s.value for s in _missing)}")

CANCELLABLE = frozenset({DonationStatus.PENDING, DonationStatus.PICKUP_SCHEDULED})

# Statuses that stamp deliveredAt
DELIVERY_STATUSES = frozenset({DonationStatus.DELIVERED, DonationStatus.COMPLETED})

RECEIVED_TITLE = "Donation Received"
RECEIVED_DESCRIPTION = "Your generous donation has been registered in our system"
DEFAULT_CANCEL_REASON = "Cancelled by user"


def status_title(status) -> str:
    try:
        return STATUS_TITLES[DonationStatus(status)]
    except ValueError:
        return str(status)


def can_cancel(status) -> bool:
    try:
        return DonationStatus(status) in CANCELLABLE
    except ValueError:
        return False


def _value(v):
    return v.value if hasattr(v, "value") else v


def validate_payload(donation_type, payload: Dict[str, Any]) -> None:
    """Raise ValidationError when the fields required by `donation_type` are missing."""
    try:
        donation_type = DonationType(donation_type)
    except ValueError:
        raise ValidationError("Please specify donation type")
    if donation_type == DonationType.FOOD:
        if not payload.get("food_item") or not payload.get("quantity"):
            raise ValidationError("Food donations require foodItem and quantity")
    elif donation_type == DonationType.MONETARY:
        amount = payload.get("amount")
        if amount is None or amount <= 0:
            raise ValidationError("Monetary donations require an amount")


def create_donation(db: Session, donor: models.User, donation_type, **payload) -> models.Donation:
    """
    Create a donation for `donor`.

    Payload keys: food_item, quantity, best_before, amount, payment_method,
    purpose, supply_items, location, notes.

    Raises:
        ValidationError: if the type-required fields are missing
    """
    validate_payload(donation_type, payload)
    donation_type = DonationType(donation_type)

    donation = models.Donation(
        donation_id=identifiers.donation_id(db),
        donor_id=donor.id,
        type=donation_type.value,
        food_item=payload.get("food_item"),
        quantity=payload.get("quantity"),
        best_before=payload.get("best_before"),
        amount=payload.get("amount"),
        payment_method=_value(payload.get("payment_method")),
        purpose=_value(payload.get("purpose")) or models.Purpose.GENERAL.value,
        supply_items=payload.get("supply_items"),
        location=payload.get("location"),
        notes=payload.get("notes"),
    )
    donation.record_status(DonationStatus.PENDING.value, RECEIVED_TITLE, RECEIVED_DESCRIPTION)
    db.add(donation)

    monetary_amount = donation.amount if donation_type == DonationType.MONETARY else 0
    increment_user_totals(db, donor.id, monetary_amount or 0)

    db.commit()
    db.refresh(donation)
    logger.info("Donation %s created by user %s (%s)", donation.donation_id, donor.id, donation.type)
    return donation


def get_donation(db: Session, donation_pk: str) -> models.Donation:
    donation = db.query(models.Donation).filter(models.Donation.id == donation_pk).first()
    if donation is None:
        raise NotFoundError("Donation not found")
    return donation


def _require_owner_or_admin(donation: models.Donation, user: models.User, action: str) -> None:
    if donation.donor_id != user.id and not user.is_admin:
        raise ForbiddenError(f"Not authorized to {action} this donation")


def get_donation_for(db: Session, donation_pk: str, user: models.User) -> models.Donation:
    donation = get_donation(db, donation_pk)
    _require_owner_or_admin(donation, user, "view")
    return donation


def track_donation(db: Session, donation_id: str) -> models.Donation:
    """Public lookup by business ID. No authorization check."""
    donation = db.query(models.Donation).filter(models.Donation.donation_id == donation_id).first()
    if donation is None:
        raise NotFoundError("Donation not found. Please check the donation ID.")
    return donation


def list_donations_for(db: Session, user: models.User, page: int = 1, limit: int = 10) -> Tuple[List[models.Donation], int]:
    query = db.query(models.Donation).filter(models.Donation.donor_id == user.id)
    total = query.count()
    donations = (
        query.order_by(models.Donation.created_at.desc(), models.Donation.donation_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return donations, total


def transition_status(
    db: Session,
    donation_pk: str,
    status,
    description: Optional[str] = None,
    recipient: Optional[Dict[str, Any]] = None,
) -> models.Donation:
    """
    Admin status update.

    No transition graph is enforced: the target status is applied as-is and a
    timeline entry is appended on every call, even when the status is
    unchanged.

    Raises:
        NotFoundError: if the donation does not exist
        ValidationError: if `status` is not a known donation status
    """
    try:
        status = DonationStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid donation status: {status}")

    donation = get_donation(db, donation_pk)
    now = utcnow()

    donation.record_status(
        status.value,
        status_title(status),
        description or f"Status updated to {status.value}",
        timestamp=now,
    )

    if recipient:
        donation.recipient = recipient

    if status in DELIVERY_STATUSES:
        donation.delivered_at = now

    db.commit()
    db.refresh(donation)
    logger.info("Donation %s moved to %s", donation.donation_id, status.value)
    return donation


def cancel_donation(
    db: Session,
    donation_pk: str,
    user: models.User,
    reason: Optional[str] = None,
) -> models.Donation:
    """
    Cancel a donation on behalf of its donor (or an admin).

    Raises:
        NotFoundError: if the donation does not exist
        ForbiddenError: if `user` is neither the donor nor an admin
        InvalidStateError: if the donation is past pickup scheduling
    """
    donation = get_donation(db, donation_pk)
    _require_owner_or_admin(donation, user, "cancel")

    if not can_cancel(donation.status):
        raise InvalidStateError("Cannot cancel donation at this stage")

    reason = reason or DEFAULT_CANCEL_REASON
    now = utcnow()
    donation.cancelled_at = now
    donation.cancel_reason = reason
    donation.record_status(DonationStatus.CANCELLED.value, "Donation Cancelled", reason, timestamp=now)

    db.commit()
    db.refresh(donation)
    logger.info("Donation %s cancelled by user %s", donation.donation_id, user.id)
    return donation
