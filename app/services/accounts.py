"""
User accounts: registration, login, profile, admin user management, and the
running donation aggregates.

donations_count / total_amount_donated are never recomputed from history;
they are bumped with a single SQL UPDATE (value = value + n) so concurrent
payments cannot lose an increment.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app import models
from app.auth import hash_password, verify_password
from app.exceptions import AuthenticationError, ForbiddenError, NotFoundError, ValidationError
from app.models import UserStatus

logger = logging.getLogger("feedindia.accounts")


def increment_user_totals(db: Session, user_id: str, amount: float = 0) -> None:
    """Atomically add one donation (and `amount`) to a user's aggregates. Does not commit."""
    values = {models.User.donations_count: models.User.donations_count + 1}
    if amount:
        values[models.User.total_amount_donated] = models.User.total_amount_donated + amount
    db.query(models.User).filter(models.User.id == user_id).update(values, synchronize_session=False)


def register_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    user_type: str = models.UserType.INDIVIDUAL.value,
) -> models.User:
    email = email.strip().lower()
    existing = db.query(models.User).filter(models.User.email == email).first()
    if existing:
        raise ValidationError("User already exists with this email")

    user = models.User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        user_type=getattr(user_type, "value", user_type),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> models.User:
    """
    Raises:
        ValidationError: if email or password is missing
        AuthenticationError: if the credentials do not match
        ForbiddenError: if the account is suspended
    """
    if not email or not password:
        raise ValidationError("Please provide email and password")

    user = db.query(models.User).filter(models.User.email == email.strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    if user.status == UserStatus.SUSPENDED.value:
        raise ForbiddenError("Your account has been suspended")
    return user


def update_profile(
    db: Session,
    user: models.User,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[Dict[str, Any]] = None,
) -> models.User:
    if name:
        user.name = name.strip()
    if phone:
        user.phone = phone.strip()
    if address:
        user.address = address
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: models.User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed for user %s", user.id)


def get_user(db: Session, user_id: str) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 20,
    user_type: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[models.User], int]:
    query = db.query(models.User)
    if user_type:
        query = query.filter(models.User.user_type == user_type)
    if status:
        query = query.filter(models.User.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(models.User.name.ilike(pattern), models.User.email.ilike(pattern)))

    total = query.count()
    users = (
        query.order_by(models.User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def user_detail(db: Session, user_id: str) -> Tuple[models.User, List[models.Donation], List[models.Payment]]:
    """A user with their 20 most recent donations and payments."""
    user = get_user(db, user_id)
    donations = (
        db.query(models.Donation)
        .filter(models.Donation.donor_id == user_id)
        .order_by(models.Donation.created_at.desc())
        .limit(20)
        .all()
    )
    payments = (
        db.query(models.Payment)
        .filter(models.Payment.user_id == user_id)
        .order_by(models.Payment.created_at.desc())
        .limit(20)
        .all()
    )
    return user, donations, payments


def set_user_status(db: Session, user_id: str, status) -> models.User:
    user = get_user(db, user_id)
    user.status = getattr(status, "value", status)
    db.commit()
    db.refresh(user)
    logger.info("User %s status set to %s", user.id, user.status)
    return user
