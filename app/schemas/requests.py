import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models import (
    ContactSubject,
    ContactStatus,
    DonationStatus,
    DonationType,
    PaymentMethod,
    Purpose,
    RecipientType,
    SupplyCondition,
    UserStatus,
    UserType,
)

EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


class CamelModel(BaseModel):
    """Accepts camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Please provide a valid email")
    return v


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class Location(CamelModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class SupplyItem(CamelModel):
    name: Optional[str] = None
    quantity: Optional[str] = None
    condition: Optional[SupplyCondition] = None


class Recipient(CamelModel):
    name: Optional[str] = None
    type: Optional[RecipientType] = None
    location: Optional[str] = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6)
    user_type: UserType = UserType.INDIVIDUAL

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Please provide a name")
        return v

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return _check_email(v)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = None
    address: Optional[Address] = None


class PasswordChangeRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


# ---------------------------------------------------------------------------
# Donations
# ---------------------------------------------------------------------------
class DonationCreateRequest(CamelModel):
    type: DonationType
    food_item: Optional[str] = None
    quantity: Optional[str] = None
    best_before: Optional[str] = None
    amount: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    purpose: Optional[Purpose] = None
    supply_items: Optional[List[SupplyItem]] = None
    location: Optional[Location] = None
    notes: Optional[str] = None


class CancelRequest(CamelModel):
    reason: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: DonationStatus
    description: Optional[str] = None
    recipient: Optional[Recipient] = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CreateOrderRequest(CamelModel):
    amount: Optional[float] = None
    donation_type: Optional[str] = None
    description: Optional[str] = None


class VerifyPaymentRequest(CamelModel):
    order_id: str
    payment_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


# ---------------------------------------------------------------------------
# Contact / admin
# ---------------------------------------------------------------------------
class ContactRequest(CamelModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = None
    subject: Optional[ContactSubject] = None
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return _check_email(v)


class UserStatusUpdateRequest(CamelModel):
    status: UserStatus


class ContactUpdateRequest(CamelModel):
    status: Optional[ContactStatus] = None
    response_message: Optional[str] = None
