import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text

from donation_desk.database import Base


class Cause(str, Enum):
    ORPHANAGE = "orphanage"
    EDUCATION = "education"
    HEALTH = "health"
    WOMEN_EMPOWERMENT = "women_empowerment"
    ENVIRONMENT = "environment"
    SOCIAL_IMPACT = "social_impact"
    GENERAL = "general"


CAUSE_LABELS = {
    Cause.ORPHANAGE: "Orphanage Support",
    Cause.EDUCATION: "Education Initiative",
    Cause.HEALTH: "Healthcare Mission",
    Cause.WOMEN_EMPOWERMENT: "Women Empowerment",
    Cause.ENVIRONMENT: "Green Earth Initiative",
    Cause.SOCIAL_IMPACT: "Social Impact Drive",
    Cause.GENERAL: "Community Support",
}


def cause_label(cause) -> str:
    try:
        return CAUSE_LABELS[Cause(cause)]
    except ValueError:
        return str(cause)


class DonationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ISSUED = "issued"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# (from_status, action) -> to_status. Anything not listed is an invalid transition.
TRANSITIONS = {
    (DonationStatus.PENDING, Decision.APPROVE.value): DonationStatus.APPROVED,
    (DonationStatus.PENDING, Decision.REJECT.value): DonationStatus.REJECTED,
    (DonationStatus.APPROVED, "issue"): DonationStatus.ISSUED,
}


def generate_id():
    return f"don_{uuid.uuid4().hex[:12]}"


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Donation(Base):
    __tablename__ = "donations"

    id = Column(String, primary_key=True, default=generate_id)
    donor_name = Column(String(100), nullable=False)
    donor_email = Column(String, nullable=True)
    donor_phone = Column(String(15), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    show_amount = Column(Boolean, nullable=False, default=False)
    cause = Column(String, nullable=False)
    screenshot_url = Column(String, nullable=True)  # blob store ref, not a URL
    status = Column(String, nullable=False, default=DonationStatus.PENDING.value, index=True)
    ai_message = Column(Text, nullable=True)
    poster_issued_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
