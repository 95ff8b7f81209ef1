from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models
from app.auth import get_current_user
from app.database import get_db
from app.routers.common import PageParams, page_params
from app.schemas.requests import CancelRequest, DonationCreateRequest
from app.schemas.responses import (
    DonationCreatedResponse,
    DonationOut,
    DonationPage,
    DonationResponse,
    DonationSummary,
)
from app.services import lifecycle

router = APIRouter()


@router.post("", response_model=DonationCreatedResponse, status_code=201)
def create_donation(
    request: DonationCreateRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Submit a food, monetary or supplies donation.

    - food requires foodItem + quantity
    - monetary requires amount > 0
    """
    payload = request.model_dump(exclude={"type"}, mode="json")
    donation = lifecycle.create_donation(db, user, request.type, **payload)
    return DonationCreatedResponse(
        message="Donation created successfully",
        donation=DonationSummary.model_validate(donation),
    )


@router.get("", response_model=DonationPage)
def my_donations(
    paging: PageParams = Depends(page_params),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    donations, total = lifecycle.list_donations_for(db, user, paging.page, paging.limit)
    return DonationPage(
        donations=[DonationOut.model_validate(d) for d in donations],
        **paging.meta(len(donations), total),
    )


@router.get("/track/{donation_id}", response_model=DonationResponse)
def track(donation_id: str, db: Session = Depends(get_db)):
    """Public tracking by donation ID (e.g. DON-2024-00001), timeline included."""
    donation = lifecycle.track_donation(db, donation_id)
    return DonationResponse(donation=DonationOut.model_validate(donation))


@router.get("/{donation_pk}", response_model=DonationResponse)
def get_donation(
    donation_pk: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    donation = lifecycle.get_donation_for(db, donation_pk, user)
    return DonationResponse(donation=DonationOut.model_validate(donation))


@router.put("/{donation_pk}/cancel", response_model=DonationResponse)
def cancel(
    donation_pk: str,
    request: CancelRequest = None,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only pending or pickup-scheduled donations can be cancelled."""
    reason = request.reason if request else None
    donation = lifecycle.cancel_donation(db, donation_pk, user, reason)
    return DonationResponse(
        message="Donation cancelled successfully",
        donation=DonationOut.model_validate(donation),
    )
