"""
Contact tickets.

Priority is derived once from the subject at creation and never recomputed:
  technical -> high, general -> low, anything else -> medium
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app import config, models
from app.exceptions import NotFoundError, ValidationError
from app.models import ContactSubject, Priority, utcnow
from app.services import identifiers
from app.services.notifier import BaseNotifier, notify_safely, ticket_notification

logger = logging.getLogger("feedindia.contact")


def priority_for(subject) -> str:
    subject = getattr(subject, "value", subject)
    if subject == ContactSubject.TECHNICAL.value:
        return Priority.HIGH.value
    if subject == ContactSubject.GENERAL.value:
        return Priority.LOW.value
    return Priority.MEDIUM.value


def submit_contact(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    subject,
    message: Optional[str],
    notifier: Optional[BaseNotifier] = None,
) -> models.Contact:
    if not name or not email or not subject or not message:
        raise ValidationError("Please provide name, email, subject, and message")

    subject = getattr(subject, "value", subject)
    contact = models.Contact(
        ticket_id=identifiers.ticket_id(db),
        name=name.strip(),
        email=email.strip().lower(),
        subject=subject,
        message=message,
        priority=priority_for(subject),
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    logger.info("Contact saved with ticket %s", contact.ticket_id)

    if notifier is not None:
        notify_safely(notifier, config.SUPPORT_EMAIL, *ticket_notification(contact))
    return contact


def inquiries_for(db: Session, email: Optional[str]) -> List[models.Contact]:
    if not email:
        raise ValidationError("Please provide an email")
    return (
        db.query(models.Contact)
        .filter(models.Contact.email == email.strip().lower())
        .order_by(models.Contact.created_at.desc())
        .all()
    )


def list_contacts(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    subject: Optional[str] = None,
) -> Tuple[List[models.Contact], int]:
    query = db.query(models.Contact)
    if status:
        query = query.filter(models.Contact.status == status)
    if subject:
        query = query.filter(models.Contact.subject == subject)

    total = query.count()
    contacts = (
        query.order_by(models.Contact.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return contacts, total


def update_contact(
    db: Session,
    contact_pk: str,
    admin: models.User,
    status=None,
    response_message: Optional[str] = None,
) -> models.Contact:
    contact = db.query(models.Contact).filter(models.Contact.id == contact_pk).first()
    if contact is None:
        raise NotFoundError("Contact inquiry not found")

    if status:
        contact.status = getattr(status, "value", status)
    if response_message:
        contact.response_message = response_message
        contact.responded_at = utcnow()
        contact.responded_by = admin.id

    db.commit()
    db.refresh(contact)
    return contact
