import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:
    """Runtime configuration, read from the environment once at import time."""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'donations.db'}")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Blob store
        self.media_root = Path(os.getenv("MEDIA_ROOT", str(BASE_DIR / "media")))
        self.media_url = os.getenv("MEDIA_URL", "/media").rstrip("/")
        self.max_screenshot_bytes = int(os.getenv("MAX_SCREENSHOT_BYTES", 5 * 1024 * 1024))

        # Appreciation message generation
        self.ai_gateway_url = os.getenv(
            "AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions"
        )
        self.ai_api_key = os.getenv("AI_API_KEY", "")
        self.ai_model = os.getenv("AI_MODEL", "google/gemini-3-flash-preview")

        # Email delivery
        self.resend_api_url = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
        self.resend_api_key = os.getenv("RESEND_API_KEY", "")
        self.mail_from = os.getenv(
            "MAIL_FROM", "Street Cause VIIT <noreply@send.streetcauseviit.org>"
        )

        # Branding
        self.org_name = os.getenv("ORG_NAME", "Street Cause VIIT")
        self.poster_logo_path = os.getenv("POSTER_LOGO_PATH") or None

        # Per-step budgets for the issuance pipeline, in seconds
        self.generation_timeout_s = float(os.getenv("GENERATION_TIMEOUT_S", 15))
        self.render_timeout_s = float(os.getenv("RENDER_TIMEOUT_S", 20))
        self.email_timeout_s = float(os.getenv("EMAIL_TIMEOUT_S", 20))


settings = Settings()
