from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SubmitResponse(BaseModel):
    id: str
    status: str


class DonationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    donor_name: str
    donor_email: Optional[str]
    donor_phone: Optional[str]
    amount: Optional[Decimal]
    show_amount: bool
    cause: str
    cause_label: Optional[str] = None
    screenshot_url: Optional[str]
    screenshot_public_url: Optional[str] = None
    status: str
    ai_message: Optional[str]
    poster_issued_at: Optional[datetime]
    created_at: datetime


class IssueResponse(BaseModel):
    donation: DonationOut
    email_sent: bool
    delivery_warning: Optional[str] = None


class ResendResponse(BaseModel):
    donation_id: str
    email_sent: bool
    delivery_warning: Optional[str] = None


class DonationStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    issued: int = 0
    rejected: int = 0

