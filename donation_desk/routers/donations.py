from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from donation_desk.database import get_db
from donation_desk.errors import ValidationError
from donation_desk.schemas.responses import SubmitResponse
from donation_desk.services.lifecycle import submit_donation, upload_screenshot, validate_submission

router = APIRouter()


@router.post("", response_model=SubmitResponse, status_code=201)
async def submit(
    donorName: Optional[str] = Form(None),
    donorEmail: Optional[str] = Form(None),
    donorPhone: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    showAmount: bool = Form(False),
    cause: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """
    Public donation form.

    - Validates the form; a rejected form uploads nothing
    - Uploads the optional payment screenshot; an upload failure is
      logged and the donation is recorded without it
    - Stores the donation as pending
    """
    form = {
        "donorName": donorName,
        "donorEmail": donorEmail,
        "donorPhone": donorPhone,
        "amount": amount,
        "showAmount": showAmount,
        "cause": cause,
    }

    try:
        submission = validate_submission(form)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})

    screenshot_ref = None
    if screenshot is not None and screenshot.filename:
        screenshot_ref = await upload_screenshot(screenshot.filename, await screenshot.read())

    donation = submit_donation(submission, db, screenshot_ref=screenshot_ref)

    return SubmitResponse(id=donation.id, status=donation.status)
