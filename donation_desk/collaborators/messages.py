import logging
from decimal import Decimal
from typing import Optional

import httpx

from donation_desk.collaborators.base import MessageGenerator
from donation_desk.config import settings
from donation_desk.errors import GenerationError

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = (
    "Your kindness helped turn compassion into action. "
    "Thank you for being part of Street Cause VIIT's journey."
)

SYSTEM_PROMPT = (
    "You are a professional copywriter for an ethical, student-run NGO. "
    "Write warm, sincere appreciation messages that inspire pride and encourage sharing. "
    "Keep messages under 50 words."
)


def build_prompt(cause_label: str, amount: Optional[Decimal], org_name: str) -> str:
    amount_line = f"They donated ₹{amount}." if amount else ""
    return (
        f'Generate a short, heartfelt appreciation message (2-3 sentences max) for a donor '
        f'who supported "{cause_label}" at {org_name}, a student-run NGO in India.\n\n'
        "The message should be:\n"
        "- Warm and grateful\n"
        "- Inspiring but not over-the-top\n"
        "- Professional and ethical\n"
        "- Mentioning the impact of their contribution\n\n"
        f"{amount_line}\n\n"
        "Do NOT include the donor's name in the message - it will be added separately.\n"
        'Do NOT use phrases like "Dear [Name]" or greetings.\n'
        "Just the appreciation text, nothing else."
    )


class GatewayMessageGenerator(MessageGenerator):
    """
    OpenAI-compatible chat completion gateway.
    Non-2xx responses (429 rate limit, 402 credits exhausted, 5xx) and network
    failures raise GenerationError. An empty completion yields FALLBACK_MESSAGE.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.ai_gateway_url
        self.api_key = api_key if api_key is not None else settings.ai_api_key
        self.model = model or settings.ai_model
        self.transport = transport

    async def generate(self, donor_name: str, cause_label: str, amount: Optional[Decimal]) -> str:
        # donor_name stays out of the prompt; the poster prints it separately
        if not self.api_key:
            raise GenerationError("AI_API_KEY is not configured")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(cause_label, amount, settings.org_name)},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                resp = await client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise GenerationError(f"AI gateway unreachable: {e}") from e

        if resp.status_code == 429:
            raise GenerationError("Rate limit exceeded")
        if resp.status_code == 402:
            raise GenerationError("AI credits exhausted")
        if not resp.is_success:
            raise GenerationError(f"AI service error: {resp.status_code}")

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            content = ""

        message = content.strip()
        if not message:
            logger.warning("AI gateway returned an empty completion; using fallback message")
            return FALLBACK_MESSAGE
        return message
