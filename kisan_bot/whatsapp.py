from __future__ import annotations

import os
from typing import Dict, Optional

import requests
from dotenv import load_dotenv
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

load_dotenv()

MAX_BODY_CHARS = 1600
CHANNEL_PREFIX = "whatsapp:"


def strip_channel_prefix(number: str) -> str:
    number = (number or "").strip()
    if number.startswith(CHANNEL_PREFIX):
        return number[len(CHANNEL_PREFIX):]
    return number


class WhatsAppService:
    # auto-detects mode: twilio credentials → twilio, otherwise mock (console)

    def __init__(self, account_sid: Optional[str] = None,
                 auth_token: Optional[str] = None,
                 from_number: Optional[str] = None,
                 timeout: float = 10.0):
        self._twilio_sid   = (account_sid or os.getenv("TWILIO_ACCOUNT_SID", "")).strip()
        self._twilio_token = (auth_token or os.getenv("TWILIO_AUTH_TOKEN", "")).strip()
        self._twilio_from  = (from_number or os.getenv("TWILIO_WHATSAPP_NUMBER",
                                                       "whatsapp:+14155238886")).strip()
        self.timeout = timeout

        if self._twilio_sid and self._twilio_token:
            self.mode = "twilio"
            self._client = Client(self._twilio_sid, self._twilio_token,
                                  http_client=TwilioHttpClient(timeout=timeout))
        else:
            self.mode = "mock"
            self._client = None

        self.available = self.mode != "mock"
        print(f"[WhatsApp] Mode: {self.mode}")

    # ──────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────

    def send_message(self, to_number: str, message_text: str) -> Dict:
        to_number = strip_channel_prefix(to_number)
        if not to_number:
            return {"status": "failed", "error": "No number provided"}

        if self.mode == "mock":
            return self._send_mock(to_number, message_text)
        return self._send_twilio(to_number, body=message_text[:MAX_BODY_CHARS])

    def send_media(self, to_number: str, media_url: str,
                   caption: Optional[str] = None) -> Dict:
        to_number = strip_channel_prefix(to_number)
        if not to_number:
            return {"status": "failed", "error": "No number provided"}

        if self.mode == "mock":
            return self._send_mock(to_number, caption or "", media_url)
        params = {"media_url": [media_url]}
        if caption:
            params["body"] = caption[:MAX_BODY_CHARS]
        return self._send_twilio(to_number, **params)

    def download_media(self, media_url: str) -> bytes:
        """Fetch an inbound media file. Twilio media URLs need account auth."""
        auth = (self._twilio_sid, self._twilio_token) if self.mode == "twilio" else None
        response = requests.get(media_url, auth=auth, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    # ──────────────────────────────────────────────────────────────────

    def _send_twilio(self, to_number: str, **params) -> Dict:
        try:
            msg = self._client.messages.create(
                from_=self._twilio_from,
                to=f"{CHANNEL_PREFIX}{to_number}",
                **params,
            )
            return {"status": "sent", "message_sid": msg.sid}
        except Exception as e:
            print(f"[WhatsApp] Twilio error for {to_number}: {e}")
            return {"status": "failed", "error": str(e)}

    def _send_mock(self, to_number: str, message_text: str,
                   media_url: Optional[str] = None) -> Dict:
        print("\n[WhatsApp MOCK] ─────────────────────────")
        print(f"  To:    {to_number}")
        if media_url:
            print(f"  Media: {media_url}")
        print(f"  Body:\n{message_text}")
        print("──────────────────────────────────────────")
        return {"status": "mock", "message_sid": None}


def delivered(result: Dict) -> bool:
    return result.get("status") in ("sent", "mock")
