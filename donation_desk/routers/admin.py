from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from donation_desk.database import get_db
from donation_desk.errors import DonationError, InvalidTransition, NotFound, RenderError, ValidationError
from donation_desk.models import Donation, cause_label
from donation_desk.schemas.requests import DecisionRequest
from donation_desk.schemas.responses import DonationOut, DonationStats, IssueResponse, ResendResponse
from donation_desk.services import lifecycle
from donation_desk.services.lifecycle import (
    decide_donation,
    donation_stats,
    get_donation,
    issue_poster,
    list_donations,
    poster_image,
    resend_poster,
)

router = APIRouter()


def _http_error(e: DonationError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail={"field": e.field, "message": e.message})
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidTransition):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, RenderError):
        return HTTPException(status_code=502, detail=f"{e}. Please retry.")
    return HTTPException(status_code=500, detail=str(e))


def _donation_out(donation: Donation) -> DonationOut:
    out = DonationOut.model_validate(donation)
    out.cause_label = cause_label(donation.cause)
    out.screenshot_public_url = lifecycle.screenshot_public_url(donation)
    return out


@router.get("", response_model=List[DonationOut])
def list_all(status: Optional[str] = None, db: Session = Depends(get_db)):
    """All donations, newest first. `status` narrows to pending/approved/issued/rejected."""
    try:
        donations = list_donations(db, status=status)
    except DonationError as e:
        raise _http_error(e)
    return [_donation_out(d) for d in donations]


@router.get("/stats", response_model=DonationStats)
def stats(db: Session = Depends(get_db)):
    return DonationStats(**donation_stats(db))


@router.get("/{donation_id}", response_model=DonationOut)
def detail(donation_id: str, db: Session = Depends(get_db)):
    try:
        donation = get_donation(donation_id, db)
    except DonationError as e:
        raise _http_error(e)
    return _donation_out(donation)


@router.post("/{donation_id}/decision", response_model=DonationOut)
def decide(donation_id: str, request: DecisionRequest, db: Session = Depends(get_db)):
    """Approve or reject a pending donation."""
    try:
        donation = decide_donation(donation_id, request.decision, db)
    except DonationError as e:
        raise _http_error(e)
    return _donation_out(donation)


@router.post("/{donation_id}/issue", response_model=IssueResponse)
async def issue(donation_id: str, db: Session = Depends(get_db)):
    """
    Issue the supporter poster for an approved donation.

    The response always says whether the email went out; a failed or
    skipped email does not undo the issuance.
    """
    try:
        result = await issue_poster(donation_id, db)
    except DonationError as e:
        raise _http_error(e)
    return IssueResponse(
        donation=_donation_out(result.donation),
        email_sent=result.email_sent,
        delivery_warning=result.delivery_warning,
    )


@router.post("/{donation_id}/resend", response_model=ResendResponse)
async def resend(donation_id: str, db: Session = Depends(get_db)):
    try:
        result = await resend_poster(donation_id, db)
    except DonationError as e:
        raise _http_error(e)
    return ResendResponse(
        donation_id=result.donation_id,
        email_sent=result.email_sent,
        delivery_warning=result.delivery_warning,
    )


@router.get("/{donation_id}/poster", response_class=Response)
async def poster(donation_id: str, db: Session = Depends(get_db)):
    try:
        image = await poster_image(donation_id, db)
    except DonationError as e:
        raise _http_error(e)
    filename = f"poster-{donation_id}.png"
    return Response(
        content=image,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
