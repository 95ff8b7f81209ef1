import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship

from app.database import Base


def generate_id():
    return uuid.uuid4().hex


def utcnow():
    # Stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DonationType(str, enum.Enum):
    FOOD = "food"
    MONETARY = "monetary"
    SUPPLIES = "supplies"


class DonationStatus(str, enum.Enum):
    PENDING = "pending"
    PICKUP_SCHEDULED = "pickup-scheduled"
    IN_TRANSIT = "in-transit"
    QUALITY_CHECK = "quality-check"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    UPI = "upi"
    BANK = "bank"
    CARD = "card"
    CASH = "cash"


class Purpose(str, enum.Enum):
    GENERAL = "general"
    MEALS = "meals"
    FLEET = "fleet"
    TRAINING = "training"
    AWARENESS = "awareness"


class SupplyCondition(str, enum.Enum):
    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"


class RecipientType(str, enum.Enum):
    SHELTER = "shelter"
    ORPHANAGE = "orphanage"
    SCHOOL = "school"
    HOSPITAL = "hospital"
    COMMUNITY_KITCHEN = "community-kitchen"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    CREATED = "created"
    ATTEMPTED = "attempted"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class UserType(str, enum.Enum):
    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"
    CORPORATE = "corporate"


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


class ContactSubject(str, enum.Enum):
    VOLUNTEER = "volunteer"
    DONATION = "donation"
    PARTNERSHIP = "partnership"
    GENERAL = "general"
    TECHNICAL = "technical"


class ContactStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    user_type = Column(String, nullable=False, default=UserType.INDIVIDUAL.value)
    role = Column(String, nullable=False, default=Role.USER.value)
    phone = Column(String, nullable=True)
    address = Column(JSON, nullable=True)  # {street, city, state, pincode}
    status = Column(String, nullable=False, default=UserStatus.ACTIVE.value, index=True)
    # Running aggregates, only ever incremented in SQL
    donations_count = Column(Integer, nullable=False, default=0)
    total_amount_donated = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class TimelineEntry(Base):
    __tablename__ = "donation_timeline"

    id = Column(Integer, primary_key=True, autoincrement=True)
    donation_id = Column(String, ForeignKey("donations.id"), nullable=False, index=True)
    status = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)


class Donation(Base):
    __tablename__ = "donations"

    id = Column(String, primary_key=True, default=generate_id)
    donation_id = Column(String, nullable=False, unique=True, index=True)
    donor_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False, index=True)
    # food
    food_item = Column(String, nullable=True)
    quantity = Column(String, nullable=True)
    best_before = Column(String, nullable=True)
    # monetary
    amount = Column(Float, nullable=True)
    payment_method = Column(String, nullable=True)
    purpose = Column(String, nullable=True, default=Purpose.GENERAL.value)
    # supplies: [{name, quantity, condition}]
    supply_items = Column(JSON, nullable=True)
    location = Column(JSON, nullable=True)  # {address, city, state, pincode}
    notes = Column(Text, nullable=True)
    recipient = Column(JSON, nullable=True)  # {name, type, location}
    status = Column(String, nullable=False, default=DonationStatus.PENDING.value, index=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    donor = relationship("User", lazy="joined")
    _timeline = relationship(
        "TimelineEntry",
        order_by="TimelineEntry.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def timeline(self):
        return tuple(self._timeline)

    def append_timeline(self, status: str, title: str, description: str = None, timestamp=None):
        """Append an audit entry. Entries are never edited or removed."""
        entry = TimelineEntry(
            status=status,
            title=title,
            description=description,
            timestamp=timestamp or utcnow(),
        )
        self._timeline.append(entry)
        return entry

    def record_status(self, status: str, title: str, description: str = None, timestamp=None):
        """Move to `status` and log it, keeping timeline[-1].status == status."""
        self.status = status
        return self.append_timeline(status, title, description, timestamp)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True, default=generate_id)
    payment_id = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    donation_id = Column(String, ForeignKey("donations.id"), nullable=True)
    order_id = Column(String, nullable=False, unique=True, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String, nullable=False, default=PaymentStatus.CREATED.value, index=True)
    payment_method = Column(String, nullable=True)
    donation_type = Column(String, nullable=True)
    description = Column(String, nullable=True)
    receipt_id = Column(String, nullable=True)
    simulated_details = Column(JSON, nullable=True)  # {upiId, cardLast4, bankName, transactionRef}
    paid_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    failure_reason = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    donation = relationship("Donation", lazy="joined")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String, primary_key=True, default=generate_id)
    ticket_id = Column(String, nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False, default=ContactSubject.GENERAL.value)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default=ContactStatus.NEW.value, index=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    response_message = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    responded_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class SequenceCounter(Base):
    """Per-(name, year) counter backing DON-/TKT- identifiers."""
    __tablename__ = "sequence_counters"

    name = Column(String, primary_key=True)
    year = Column(Integer, primary_key=True, autoincrement=False)
    value = Column(Integer, nullable=False, default=0)
