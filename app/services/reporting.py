"""
Read-only dashboard statistics and analytics.

Nothing here is stored; every figure is recomputed per request:

  totalFunds       sum(amount) of monetary donations in {completed, paid}
  estimatedMeals   floor(totalFunds / MEAL_COST)
  donationChange   % change of this month's donation count vs last month,
                   100 when last month had none
  monthly          most recent 12 (year, month) buckets
  topDonors        top 10 users by donationsCount, then totalAmountDonated
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import extract, func, or_
from sqlalchemy.orm import Session

from app import models
from app.config import MEAL_COST
from app.models import DonationStatus, DonationType, UserStatus, utcnow

FUNDED_STATUSES = ("completed", "paid")
COMPLETED_STATUSES = (DonationStatus.COMPLETED.value, DonationStatus.DELIVERED.value)


def _month_start(year: int, month: int) -> datetime:
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1)


def percent_change(current: int, previous: int) -> int:
    if previous <= 0:
        return 100
    # Halves round up
    change = (current - previous) / previous * 100
    return int(math.floor(change + 0.5))


def dashboard_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    start_of_month = _month_start(now.year, now.month)
    start_of_last_month = _month_start(now.year, now.month - 1)

    donations = db.query(models.Donation)

    total_funds = (
        db.query(func.coalesce(func.sum(models.Donation.amount), 0.0))
        .filter(
            models.Donation.type == DonationType.MONETARY.value,
            models.Donation.status.in_(FUNDED_STATUSES),
        )
        .scalar()
    ) or 0.0

    monthly_donations = donations.filter(models.Donation.created_at >= start_of_month).count()
    last_month_donations = donations.filter(
        models.Donation.created_at >= start_of_last_month,
        models.Donation.created_at < start_of_month,
    ).count()

    return {
        "total_donations": donations.count(),
        "total_users": db.query(models.User).count(),
        "active_users": db.query(models.User).filter(models.User.status == UserStatus.ACTIVE.value).count(),
        "pending_donations": donations.filter(models.Donation.status == DonationStatus.PENDING.value).count(),
        "completed_donations": donations.filter(models.Donation.status.in_(COMPLETED_STATUSES)).count(),
        "total_funds": float(total_funds),
        "estimated_meals": int(total_funds // MEAL_COST),
        "monthly_donations": monthly_donations,
        "donation_change": percent_change(monthly_donations, last_month_donations),
    }


def _group_counts(db: Session, column) -> List[Dict[str, Any]]:
    rows = db.query(column, func.count(models.Donation.id)).group_by(column).all()
    return [{"key": key, "count": count} for key, count in rows]


def donation_analytics(db: Session) -> Dict[str, Any]:
    year = extract("year", models.Donation.created_at)
    month = extract("month", models.Donation.created_at)
    monthly_rows = (
        db.query(year.label("year"), month.label("month"), func.count(models.Donation.id))
        .group_by(year, month)
        .order_by(year.desc(), month.desc())
        .limit(12)
        .all()
    )

    top_donors = (
        db.query(models.User)
        .order_by(models.User.donations_count.desc(), models.User.total_amount_donated.desc())
        .limit(10)
        .all()
    )

    return {
        "by_type": _group_counts(db, models.Donation.type),
        "by_status": _group_counts(db, models.Donation.status),
        "monthly": [
            {"year": int(y), "month": int(m), "count": c} for y, m, c in monthly_rows
        ],
        "top_donors": top_donors,
    }


def search_donations(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    donation_type: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[models.Donation], int]:
    """Admin listing; `search` matches donationId or foodItem, case-insensitive."""
    query = db.query(models.Donation)
    if status:
        query = query.filter(models.Donation.status == status)
    if donation_type:
        query = query.filter(models.Donation.type == donation_type)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(models.Donation.donation_id.ilike(pattern), models.Donation.food_item.ilike(pattern))
        )

    total = query.count()
    donations = (
        query.order_by(models.Donation.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return donations, total
