from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"[Config] {name}={raw!r} is not a number, using {default}")
        return default


def _int_env(name: str, default: int) -> int:
    return int(_float_env(name, float(default)))


@dataclass
class Settings:
    """Runtime configuration, read from the environment (and .env)."""

    twilio_sid: str = ""
    twilio_token: str = ""
    twilio_from: str = "whatsapp:+14155238886"
    weather_api_key: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    public_base_url: str = ""
    responses_dir: str = "responses"

    alert_interval_hours: float = 3.0
    reminder_hour: int = 8
    reminder_minute: int = 0
    send_delay_seconds: float = 1.0
    timezone: str = "Asia/Kolkata"

    http_timeout: float = 10.0
    llm_timeout: float = 30.0
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            twilio_sid=os.getenv("TWILIO_ACCOUNT_SID", "").strip(),
            twilio_token=os.getenv("TWILIO_AUTH_TOKEN", "").strip(),
            twilio_from=os.getenv("TWILIO_WHATSAPP_NUMBER",
                                  "whatsapp:+14155238886").strip(),
            weather_api_key=os.getenv("WEATHER_API_KEY", "").strip(),
            gemini_api_key=(os.getenv("GEMINI_API_KEY")
                            or os.getenv("GoogleAPIKey", "")).strip(),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash").strip(),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/"),
            responses_dir=os.getenv("RESPONSES_DIR", "responses").strip(),
            alert_interval_hours=_float_env("ALERT_INTERVAL_HOURS", 3.0),
            reminder_hour=_int_env("REMINDER_HOUR", 8),
            reminder_minute=_int_env("REMINDER_MINUTE", 0),
            send_delay_seconds=_float_env("SEND_DELAY_SECONDS", 1.0),
            timezone=os.getenv("BOT_TIMEZONE", "Asia/Kolkata").strip(),
            http_timeout=_float_env("HTTP_TIMEOUT", 10.0),
            llm_timeout=_float_env("LLM_TIMEOUT", 30.0),
            port=_int_env("PORT", 3000),
        )
