from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from donation_desk.models import Cause, Decision


class DonationSubmission(BaseModel):
    """Public donation form. Blank optional inputs are treated as absent."""

    model_config = ConfigDict(populate_by_name=True)

    donor_name: str = Field(..., alias="donorName", min_length=2, max_length=100)
    donor_email: Optional[EmailStr] = Field(None, alias="donorEmail")
    donor_phone: Optional[str] = Field(None, alias="donorPhone", min_length=10, max_length=15)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    show_amount: bool = Field(False, alias="showAmount")
    cause: Cause

    @field_validator("donor_email", "donor_phone", "amount", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DecisionRequest(BaseModel):
    decision: Decision
