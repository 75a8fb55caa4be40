"""
Supporter poster rendering with Pillow.

Layout, top to bottom: logo, "OFFICIAL SUPPORTER" kicker, certificate title,
donor name, quoted appreciation message, cause pill and optional amount pill,
year of service and verified stamp, footer with issuer line and motto.
"""
import asyncio
import io
import textwrap
from datetime import datetime
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from donation_desk.collaborators.base import PosterPayload, PosterRenderer, format_amount
from donation_desk.config import settings
from donation_desk.errors import RenderError

WIDTH, HEIGHT = 1080, 1350
MARGIN = 90

TOP_COLOR = (239, 246, 255)     # blue-50
MIDDLE_COLOR = (255, 255, 255)
BOTTOM_COLOR = (255, 251, 235)  # amber-50
PRIMARY = (22, 101, 52)
TEXT = (31, 41, 55)
MUTED = (107, 114, 128)
PILL_PRIMARY = (220, 252, 231)
PILL_ACCENT = (254, 243, 199)
ACCENT_TEXT = (146, 64, 14)

MOTTO = '"A life without a cause is a life without an effect"'


def _font(size: int):
    return ImageFont.load_default(size=size)


def _blend(a, b, t):
    return tuple(int(a[i] + (b[i] - a[i]) * t) for i in range(3))


def _background() -> Image.Image:
    img = Image.new("RGB", (WIDTH, HEIGHT), MIDDLE_COLOR)
    draw = ImageDraw.Draw(img)
    half = HEIGHT / 2
    for y in range(HEIGHT):
        if y < half:
            color = _blend(TOP_COLOR, MIDDLE_COLOR, y / half)
        else:
            color = _blend(MIDDLE_COLOR, BOTTOM_COLOR, (y - half) / half)
        draw.line([(0, y), (WIDTH, y)], fill=color)
    return img


def _centered(draw, y, text, font, fill) -> int:
    """Draw text horizontally centred at y; return the y just below it."""
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text(((WIDTH - (right - left)) / 2, y), text, font=font, fill=fill)
    return y + (bottom - top)


def _pills(draw, y, labels, font) -> int:
    pad_x, pad_y, gap = 32, 16, 24
    sizes = []
    for text, _, _ in labels:
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        sizes.append((right - left + 2 * pad_x, bottom - top + 2 * pad_y))
    total = sum(w for w, _ in sizes) + gap * (len(sizes) - 1)
    x = (WIDTH - total) // 2
    height = max(h for _, h in sizes)
    for (text, bg, fg), (w, h) in zip(labels, sizes):
        draw.rounded_rectangle([x, y, x + w, y + h], radius=h // 2, fill=bg)
        draw.text((x + pad_x, y + pad_y), text, font=font, fill=fg)
        x += w + gap
    return y + height


class PillowPosterRenderer(PosterRenderer):
    def __init__(self, logo_path: Optional[str] = None, org_name: Optional[str] = None):
        self.logo_path = logo_path if logo_path is not None else settings.poster_logo_path
        self.org_name = org_name or settings.org_name

    async def render(self, payload: PosterPayload) -> bytes:
        try:
            return await asyncio.to_thread(self.draw, payload)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Poster rendering failed: {e}") from e

    def draw(self, payload: PosterPayload) -> bytes:
        img = _background()
        draw = ImageDraw.Draw(img)
        y = MARGIN

        if self.logo_path:
            with Image.open(self.logo_path) as logo:
                logo = logo.convert("RGBA")
                logo.thumbnail((360, 120))
                img.paste(logo, ((WIDTH - logo.width) // 2, y), logo)
                y += logo.height + 40
        else:
            y = _centered(draw, y, self.org_name.upper(), _font(40), PRIMARY) + 50

        y = _centered(draw, y, "OFFICIAL SUPPORTER", _font(28), MUTED) + 20
        y = _centered(draw, y, "Certificate of Appreciation", _font(64), TEXT) + 70

        y = _centered(draw, y, "This recognizes", _font(30), MUTED) + 18
        y = _centered(draw, y, payload.donor_name, _font(72), PRIMARY) + 70

        message_font = _font(36)
        for line in textwrap.wrap(f'"{payload.message}"', width=42):
            y = _centered(draw, y, line, message_font, TEXT) + 14
        y += 50

        pills = [(payload.cause_label, PILL_PRIMARY, PRIMARY)]
        if payload.display_amount is not None:
            pills.append((f"₹{format_amount(payload.display_amount)} Contributed", PILL_ACCENT, ACCENT_TEXT))
        y = _pills(draw, y, pills, _font(30)) + 60

        draw.line([(MARGIN * 2, y), (WIDTH - MARGIN * 2, y)], fill=(229, 231, 235), width=2)
        y += 40
        y = _centered(draw, y, str(datetime.now().year), _font(52), PRIMARY) + 10
        _centered(draw, y, "Year of Service  ·  Verified", _font(24), MUTED)

        footer_font = _font(24)
        _centered(draw, HEIGHT - MARGIN - 70, f"Issued by {self.org_name} • A Campus Unit of Street Cause India",
                  footer_font, MUTED)
        _centered(draw, HEIGHT - MARGIN - 30, MOTTO, footer_font, PRIMARY)

        buf = io.BytesIO()
        img.save(buf, format="PNG", optimize=True)
        return buf.getvalue()
