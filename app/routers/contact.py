from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.requests import ContactRequest
from app.schemas.responses import ContactOut, InquiryList, TicketResponse
from app.services import contacts
from app.services.notifier import BaseNotifier, get_notifier

router = APIRouter()


@router.post("", response_model=TicketResponse, status_code=201)
def submit(
    request: ContactRequest,
    db: Session = Depends(get_db),
    notifier: BaseNotifier = Depends(get_notifier),
):
    """Public. A failed support notification does not fail the submission."""
    contact = contacts.submit_contact(
        db, request.name, request.email, request.subject, request.message, notifier=notifier
    )
    return TicketResponse(
        message="Your message has been sent. We will get back to you within 24 hours.",
        ticket_id=contact.ticket_id,
    )


@router.get("/my-inquiries", response_model=InquiryList)
def my_inquiries(email: str = Query(None), db: Session = Depends(get_db)):
    inquiries = contacts.inquiries_for(db, email)
    return InquiryList(
        count=len(inquiries),
        inquiries=[ContactOut.model_validate(c) for c in inquiries],
    )
