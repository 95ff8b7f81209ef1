from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OutModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class TimelineEntryOut(OutModel):
    status: str
    title: str
    description: Optional[str] = None
    timestamp: datetime


class DonorSummary(OutModel):
    id: str
    name: str
    email: str
    user_type: str


class DonationOut(OutModel):
    id: str
    donation_id: str
    donor_id: str
    donor: Optional[DonorSummary] = None
    type: str
    status: str
    food_item: Optional[str] = None
    quantity: Optional[str] = None
    best_before: Optional[str] = None
    amount: Optional[float] = None
    payment_method: Optional[str] = None
    purpose: Optional[str] = None
    supply_items: Optional[List[Dict[str, Any]]] = None
    location: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    recipient: Optional[Dict[str, Any]] = None
    timeline: List[TimelineEntryOut]
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class DonationSummary(OutModel):
    id: str
    donation_id: str
    type: str
    status: str
    created_at: datetime


class DonationRef(OutModel):
    id: str
    donation_id: str
    type: str
    amount: Optional[float] = None


class UserOut(OutModel):
    id: str
    name: str
    email: str
    user_type: str
    role: str
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    status: str
    donations_count: int
    total_amount_donated: float
    created_at: datetime


class PaymentOut(OutModel):
    id: str
    payment_id: str
    order_id: str
    user_id: str
    donation: Optional[DonationRef] = None
    amount: float
    currency: str
    status: str
    payment_method: Optional[str] = None
    donation_type: Optional[str] = None
    description: Optional[str] = None
    receipt_id: Optional[str] = None
    simulated_details: Optional[Dict[str, Any]] = None
    paid_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: datetime


class ContactOut(OutModel):
    id: str
    ticket_id: str
    name: str
    email: str
    subject: str
    message: str
    status: str
    priority: str
    response_message: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[str] = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Envelopes: every response is {success, message?, ...payload}
# ---------------------------------------------------------------------------
class Envelope(OutModel):
    success: bool = True
    message: Optional[str] = None


class Page(Envelope):
    count: int
    total: int
    page: int
    pages: int


class AuthResponse(Envelope):
    token: Optional[str] = None
    user: UserOut


class DonationResponse(Envelope):
    donation: DonationOut


class DonationCreatedResponse(Envelope):
    donation: DonationSummary


class DonationPage(Page):
    donations: List[DonationOut]


class OrderInfo(OutModel):
    id: str
    amount: float
    currency: str


class OrderResponse(Envelope):
    order: OrderInfo
    order_id: str
    payment_id: str
    mode: str = "simulation"


class PaymentReceipt(OutModel):
    id: str
    amount: float
    donation_id: str
    receipt_id: str
    method: str


class VerifyResponse(Envelope):
    receipt_id: str
    payment: PaymentReceipt


class PaymentResponse(Envelope):
    payment: PaymentOut


class PaymentPage(Page):
    payments: List[PaymentOut]


class TicketResponse(Envelope):
    ticket_id: str


class InquiryList(Envelope):
    count: int
    inquiries: List[ContactOut]


class ContactResponse(Envelope):
    contact: ContactOut


class ContactPage(Page):
    contacts: List[ContactOut]


class UserResponse(Envelope):
    user: UserOut


class UserPage(Page):
    users: List[UserOut]


class UserDetailResponse(Envelope):
    user: UserOut
    donations: List[DonationOut]
    payments: List[PaymentOut]


class Stats(OutModel):
    total_donations: int
    total_users: int
    active_users: int
    pending_donations: int
    completed_donations: int
    total_funds: float
    estimated_meals: int
    monthly_donations: int
    donation_change: int


class StatsResponse(Envelope):
    stats: Stats


class GroupCount(OutModel):
    key: str
    count: int


class MonthBucket(OutModel):
    year: int
    month: int
    count: int


class TopDonor(OutModel):
    id: str
    name: str
    email: str
    user_type: str
    donations_count: int
    total_amount_donated: float


class Analytics(OutModel):
    by_type: List[GroupCount]
    by_status: List[GroupCount]
    monthly: List[MonthBucket]
    top_donors: List[TopDonor]


class AnalyticsResponse(Envelope):
    analytics: Analytics


class HealthResponse(Envelope):
    timestamp: datetime
    mode: str
