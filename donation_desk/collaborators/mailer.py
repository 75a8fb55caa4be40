import base64
import html
import logging
import re
from decimal import Decimal
from typing import Optional

import httpx

from donation_desk.collaborators.base import EmailDispatcher, format_amount
from donation_desk.config import settings
from donation_desk.errors import DeliveryError

logger = logging.getLogger(__name__)


def attachment_filename(donor_name: str) -> str:
    safe_name = re.sub(r"\s+", "_", donor_name.strip())
    return f"ThankYou-{safe_name}.png"


def render_email_html(donor_name: str, cause_label: str, amount: Optional[Decimal], message: str) -> str:
    name = html.escape(donor_name)
    amount_text = f" of ₹{format_amount(amount)}" if amount else ""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, sans-serif; background-color: #f4f4f4;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; padding: 40px;">
    <h1 style="color: #16a34a; text-align: center;">Thank You, {name}!</h1>
    <p>Dear <strong>{name}</strong>,</p>
    <p>We are deeply grateful for your generous contribution to <strong>{html.escape(cause_label)}</strong>{amount_text}.
    Your support empowers us to continue our mission of creating positive change in our community.</p>
    <p style="font-style: italic; color: #555;">"{html.escape(message)}"</p>
    <p><strong>Your Thank You Poster is attached!</strong><br>
    Feel free to share it on social media to inspire others to contribute.</p>
    <p style="color: #888; font-size: 13px; text-align: center;">With heartfelt gratitude,<br>
    <strong style="color: #16a34a;">Team {html.escape(settings.org_name)}</strong></p>
  </div>
</body>
</html>"""


class ResendMailer(EmailDispatcher):
    """
    Resend transactional email API.
    Sends an HTML thank-you note with the poster attached as a PNG.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.resend_api_url
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.mail_from
        self.transport = transport

    async def send(
        self,
        to_address: str,
        donor_name: str,
        cause_label: str,
        amount: Optional[Decimal],
        message: str,
        image_bytes: bytes,
    ) -> None:
        if not self.api_key:
            raise DeliveryError("RESEND_API_KEY is not configured")
        if not to_address or not image_bytes:
            raise DeliveryError("Recipient address and poster image are required")

        body = {
            "from": self.sender,
            "to": [to_address],
            "subject": f"Thank You for Your Generous Donation, {donor_name}!",
            "html": render_email_html(donor_name, cause_label, amount, message),
            "attachments": [
                {
                    "filename": attachment_filename(donor_name),
                    "content": base64.b64encode(image_bytes).decode("ascii"),
                }
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                resp = await client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(f"Email service unreachable: {e}") from e

        if not resp.is_success:
            raise DeliveryError(f"Failed to send email: {resp.status_code} {resp.text}")

        logger.info("Poster email sent to %s", to_address)
