from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import models
from app.auth import require_admin
from app.database import get_db
from app.routers.common import PageParams, admin_page_params
from app.schemas.requests import ContactUpdateRequest, StatusUpdateRequest, UserStatusUpdateRequest
from app.schemas.responses import (
    Analytics,
    AnalyticsResponse,
    ContactOut,
    ContactPage,
    ContactResponse,
    DonationOut,
    DonationPage,
    DonationResponse,
    PaymentOut,
    Stats,
    StatsResponse,
    TopDonor,
    UserDetailResponse,
    UserOut,
    UserPage,
    UserResponse,
)
from app.services import accounts, contacts, lifecycle, reporting

# Every route here requires an admin caller
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=StatsResponse)
def stats(db: Session = Depends(get_db)):
    return StatsResponse(stats=Stats(**reporting.dashboard_stats(db)))


@router.get("/donations", response_model=DonationPage)
def list_donations(
    paging: PageParams = Depends(admin_page_params),
    status: Optional[str] = Query(None),
    donation_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    donations, total = reporting.search_donations(
        db, paging.page, paging.limit, status=status, donation_type=donation_type, search=search
    )
    return DonationPage(
        donations=[DonationOut.model_validate(d) for d in donations],
        **paging.meta(len(donations), total),
    )


@router.put("/donations/{donation_pk}/status", response_model=DonationResponse)
def update_donation_status(
    donation_pk: str,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Set any status; appends a timeline entry on every call.
    delivered / completed stamp deliveredAt.
    """
    donation = lifecycle.transition_status(
        db,
        donation_pk,
        request.status,
        description=request.description,
        recipient=request.recipient.model_dump(mode="json") if request.recipient else None,
    )
    return DonationResponse(message="Donation status updated", donation=DonationOut.model_validate(donation))


@router.get("/users", response_model=UserPage)
def list_users(
    paging: PageParams = Depends(admin_page_params),
    user_type: Optional[str] = Query(None, alias="userType"),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    users, total = accounts.list_users(
        db, paging.page, paging.limit, user_type=user_type, status=status, search=search
    )
    return UserPage(users=[UserOut.model_validate(u) for u in users], **paging.meta(len(users), total))


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def user_detail(user_id: str, db: Session = Depends(get_db)):
    user, donations, payments = accounts.user_detail(db, user_id)
    return UserDetailResponse(
        user=UserOut.model_validate(user),
        donations=[DonationOut.model_validate(d) for d in donations],
        payments=[PaymentOut.model_validate(p) for p in payments],
    )


@router.put("/users/{user_id}/status", response_model=UserResponse)
def update_user_status(user_id: str, request: UserStatusUpdateRequest, db: Session = Depends(get_db)):
    user = accounts.set_user_status(db, user_id, request.status)
    return UserResponse(message="User status updated", user=UserOut.model_validate(user))


@router.get("/contacts", response_model=ContactPage)
def list_contacts(
    paging: PageParams = Depends(admin_page_params),
    status: Optional[str] = Query(None),
    subject: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    items, total = contacts.list_contacts(db, paging.page, paging.limit, status=status, subject=subject)
    return ContactPage(contacts=[ContactOut.model_validate(c) for c in items], **paging.meta(len(items), total))


@router.put("/contacts/{contact_pk}", response_model=ContactResponse)
def update_contact(
    contact_pk: str,
    request: ContactUpdateRequest,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    contact = contacts.update_contact(
        db, contact_pk, admin, status=request.status, response_message=request.response_message
    )
    return ContactResponse(message="Contact inquiry updated", contact=ContactOut.model_validate(contact))


@router.get("/analytics/donations", response_model=AnalyticsResponse)
def donation_analytics(db: Session = Depends(get_db)):
    data = reporting.donation_analytics(db)
    return AnalyticsResponse(
        analytics=Analytics(
            by_type=data["by_type"],
            by_status=data["by_status"],
            monthly=data["monthly"],
            top_donors=[TopDonor.model_validate(u) for u in data["top_donors"]],
        )
    )
