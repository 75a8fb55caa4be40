"""
Donation lifecycle controller.

State machine:
    pending --approve--> approved --issue--> issued
    pending --reject---> rejected
rejected and issued are terminal.

Issuance pipeline, one step at a time, each bounded by a timeout:
1. Generate the appreciation message (failure degrades to FALLBACK_MESSAGE)
2. Render the poster (failure aborts with RenderError, record stays approved)
3. Email the poster if the donor left an address (failure is a warning)
4. Commit status=issued + ai_message + poster_issued_at in a single write
"""
import asyncio
import logging
import time
import weakref
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from donation_desk import models
from donation_desk.collaborators.base import PosterPayload
from donation_desk.collaborators.mailer import ResendMailer
from donation_desk.collaborators.messages import FALLBACK_MESSAGE, GatewayMessageGenerator
from donation_desk.collaborators.poster import PillowPosterRenderer
from donation_desk.collaborators.storage import LocalBlobStore
from donation_desk.config import settings
from donation_desk.errors import InvalidTransition, NotFound, RenderError, StorageError, ValidationError
from donation_desk.models import Decision, Donation, DonationStatus, cause_label
from donation_desk.schemas.requests import DonationSubmission

logger = logging.getLogger(__name__)


COLLABORATORS = {
    "storage": LocalBlobStore(),
    "generator": GatewayMessageGenerator(),
    "renderer": PillowPosterRenderer(),
    "mailer": ResendMailer(),
}

NO_EMAIL_WARNING = "No email address on record; poster was not emailed"

_record_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


class IssueResult:
    def __init__(self, donation: Donation, email_sent: bool, delivery_warning: Optional[str] = None):
        self.donation = donation
        self.email_sent = email_sent
        self.delivery_warning = delivery_warning

    @property
    def poster_issued(self) -> bool:
        return self.donation.status == DonationStatus.ISSUED.value

    @property
    def message(self) -> str:
        return self.donation.ai_message


class ResendResult:
    def __init__(self, donation_id: str, email_sent: bool, delivery_warning: Optional[str] = None):
        self.donation_id = donation_id
        self.email_sent = email_sent
        self.delivery_warning = delivery_warning


def poster_ref(donation_id: str) -> str:
    return f"posters/{donation_id}.png"


@asynccontextmanager
async def _record_guard(donation_id: str):
    """Serialise issuance work on one record within this process."""
    lock = _record_locks.get(donation_id)
    if lock is None:
        lock = asyncio.Lock()
        _record_locks[donation_id] = lock
    async with lock:
        yield


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------
async def upload_screenshot(filename: str, data: bytes) -> Optional[str]:
    """
    Store a payment screenshot and return its blob ref.
    Any failure (oversize, storage error) returns None; submission goes ahead without it.
    """
    if not data:
        return None
    if len(data) > settings.max_screenshot_bytes:
        logger.warning("Screenshot %s is %d bytes, over the limit; dropping it", filename, len(data))
        return None

    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "png"
    name = f"screenshots/{int(time.time() * 1000)}-{models.generate_id()[4:11]}.{ext}"
    try:
        return await COLLABORATORS["storage"].put(name, data)
    except Exception:
        logger.exception("Screenshot upload failed; continuing without it")
        return None


def validate_submission(data: Union[DonationSubmission, Dict[str, Any]]) -> DonationSubmission:
    """
    Check the public form without touching storage or the database.

    Raises:
        ValidationError: naming the first offending field
    """
    if isinstance(data, DonationSubmission):
        return data
    try:
        return DonationSubmission.model_validate(data)
    except PydanticValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err["loc"] else "form"
        raise ValidationError(field, err["msg"]) from e


def submit_donation(
    data: Union[DonationSubmission, Dict[str, Any]],
    db: Session,
    screenshot_ref: Optional[str] = None,
) -> Donation:
    """
    Validate and persist a new donation in pending state.

    Raises:
        ValidationError: naming the first offending field; nothing is written
    """
    data = validate_submission(data)

    donation = Donation(
        id=models.generate_id(),
        donor_name=data.donor_name,
        donor_email=data.donor_email,
        donor_phone=data.donor_phone,
        amount=data.amount,
        show_amount=data.show_amount,
        cause=data.cause.value,
        screenshot_url=screenshot_ref,
        status=DonationStatus.PENDING.value,
        created_at=models.utcnow(),
    )
    db.add(donation)
    db.commit()
    db.refresh(donation)
    logger.info("Donation %s submitted (cause=%s)", donation.id, donation.cause)
    return donation


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def get_donation(donation_id: str, db: Session) -> Donation:
    donation = db.query(Donation).filter(Donation.id == donation_id).first()
    if donation is None:
        raise NotFound(f"Donation {donation_id} not found")
    return donation


def list_donations(db: Session, status: Optional[Union[DonationStatus, str]] = None) -> List[Donation]:
    """All donations, newest first; optionally only those in one status."""
    query = db.query(Donation)
    if status is not None:
        try:
            status = DonationStatus(status)
        except ValueError as e:
            raise ValidationError("status", f"Unknown status '{status}'") from e
        query = query.filter(Donation.status == status.value)
    return query.order_by(Donation.created_at.desc(), Donation.id.desc()).all()


def donation_stats(db: Session) -> Dict[str, int]:
    donations = list_donations(db)
    stats = {"total": len(donations)}
    for status in DonationStatus:
        stats[status.value] = sum(1 for d in donations if d.status == status.value)
    return stats


def screenshot_public_url(donation: Donation) -> Optional[str]:
    if not donation.screenshot_url:
        return None
    return COLLABORATORS["storage"].get_url(donation.screenshot_url)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def _transition(donation: Donation, action: str, db: Session, **values) -> Donation:
    """
    Compare-and-set the status from its current value to the action's target.
    A concurrent writer that got there first turns this into InvalidTransition.
    """
    current = DonationStatus(donation.status)
    target = models.TRANSITIONS.get((current, action))
    if target is None:
        raise InvalidTransition(donation.id, current.value, action)

    updated = (
        db.query(Donation)
        .filter(Donation.id == donation.id, Donation.status == current.value)
        .update({"status": target.value, **values}, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        db.refresh(donation)
        raise InvalidTransition(donation.id, donation.status, action)

    db.commit()
    db.refresh(donation)
    logger.info("Donation %s: %s -> %s", donation.id, current.value, target.value)
    return donation


def decide_donation(donation_id: str, decision: Union[Decision, str], db: Session) -> Donation:
    """
    Approve or reject a pending donation.

    Raises:
        ValidationError: decision is not approve/reject
        NotFound: unknown id
        InvalidTransition: donation is not pending
    """
    try:
        decision = Decision(decision)
    except ValueError as e:
        raise ValidationError("decision", f"Unknown decision '{decision}'") from e

    donation = get_donation(donation_id, db)
    return _transition(donation, decision.value, db)


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------
def _payload(donation: Donation, message: str) -> PosterPayload:
    return PosterPayload(
        donor_name=donation.donor_name,
        cause_label=cause_label(donation.cause),
        message=message,
        amount=donation.amount,
        show_amount=donation.show_amount,
    )


async def _generate_message(donation: Donation) -> str:
    generator = COLLABORATORS["generator"]
    try:
        message = await asyncio.wait_for(
            generator.generate(donation.donor_name, cause_label(donation.cause), donation.amount),
            timeout=settings.generation_timeout_s,
        )
    except Exception:
        logger.exception("Message generation failed for %s; using fallback", donation.id)
        return FALLBACK_MESSAGE
    return (message or "").strip() or FALLBACK_MESSAGE


async def _render_poster(donation: Donation, message: str) -> bytes:
    renderer = COLLABORATORS["renderer"]
    try:
        return await asyncio.wait_for(
            renderer.render(_payload(donation, message)),
            timeout=settings.render_timeout_s,
        )
    except RenderError:
        raise
    except asyncio.TimeoutError as e:
        raise RenderError(f"Poster rendering timed out after {settings.render_timeout_s}s") from e
    except Exception as e:
        raise RenderError(f"Poster rendering failed: {e}") from e


async def _deliver(donation: Donation, message: str, image: bytes):
    """Return (email_sent, warning)."""
    if not donation.donor_email:
        return False, NO_EMAIL_WARNING

    mailer = COLLABORATORS["mailer"]
    try:
        await asyncio.wait_for(
            mailer.send(
                donation.donor_email,
                donation.donor_name,
                cause_label(donation.cause),
                donation.amount,
                message,
                image,
            ),
            timeout=settings.email_timeout_s,
        )
    except asyncio.TimeoutError:
        logger.warning("Poster email to %s timed out", donation.id)
        return False, f"Email delivery timed out after {settings.email_timeout_s}s"
    except Exception as e:
        logger.exception("Poster email for %s failed", donation.id)
        return False, f"Email delivery failed: {e}"
    return True, None


async def _store_poster(donation_id: str, image: bytes) -> None:
    try:
        await COLLABORATORS["storage"].put(poster_ref(donation_id), image)
    except Exception:
        logger.exception("Could not store poster for %s", donation_id)


async def issue_poster(donation_id: str, db: Session) -> IssueResult:
    """
    Generate, render and deliver the supporter poster, then mark the donation issued.

    Raises:
        NotFound: unknown id
        InvalidTransition: donation is not approved
        RenderError: poster could not be rendered; nothing is persisted
    """
    donation = get_donation(donation_id, db)
    async with _record_guard(donation.id):
        db.refresh(donation)
        if (DonationStatus(donation.status), "issue") not in models.TRANSITIONS:
            raise InvalidTransition(donation.id, donation.status, "issue")

        message = await _generate_message(donation)
        image = await _render_poster(donation, message)
        email_sent, warning = await _deliver(donation, message, image)

        _transition(
            donation,
            "issue",
            db,
            ai_message=message,
            poster_issued_at=models.utcnow(),
        )

    await _store_poster(donation.id, image)
    return IssueResult(donation, email_sent, warning)


async def resend_poster(donation_id: str, db: Session) -> ResendResult:
    """
    Re-render the poster from the stored message and email it again.
    Never mutates the donation.

    Raises:
        NotFound, InvalidTransition (not issued), RenderError
    """
    donation = get_donation(donation_id, db)
    if donation.status != DonationStatus.ISSUED.value:
        raise InvalidTransition(donation.id, donation.status, "resend poster for")

    image = await _render_poster(donation, donation.ai_message)
    email_sent, warning = await _deliver(donation, donation.ai_message, image)
    return ResendResult(donation.id, email_sent, warning)


async def poster_image(donation_id: str, db: Session) -> bytes:
    """PNG bytes of an issued donation's poster, from storage or re-rendered."""
    donation = get_donation(donation_id, db)
    if donation.status != DonationStatus.ISSUED.value:
        raise InvalidTransition(donation.id, donation.status, "download poster for")

    try:
        stored = await COLLABORATORS["storage"].get(poster_ref(donation.id))
    except StorageError:
        logger.exception("Stored poster for %s is unreadable; re-rendering", donation.id)
        stored = None
    if stored:
        return stored
    return await _render_poster(donation, donation.ai_message)
