"""
Generative-text interface for the bot.

Wraps the Gemini ``generateContent`` REST endpoint. Used for crop advisories,
translation of replies and the voice pipeline (transcription + answer).

Every call is bounded by a timeout and never retried. Failures are reported
on the console and surface to callers as ``None`` so each caller can pick
its own fallback.

Example:
    llm = create_gemini_llm()
    text = llm.query("What is crop rotation?", system_prompt="Answer in one sentence.")
    if text is None:
        text = "Could not fetch AI advice right now."
"""

import base64
import os
from typing import Dict, List, Optional

import requests
from dotenv import load_dotenv

load_dotenv()


class LLMManager:
    """Gemini text generation over plain HTTP."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.0-flash",
        timeout: float = 30.0
    ):
        """
        Initialize LLM Manager.

        Args:
            api_key: Gemini API key (uses GEMINI_API_KEY / GoogleAPIKey env var if not provided)
            model: Gemini model name (default: gemini-2.0-flash)
            timeout: Seconds to wait for a single generateContent call
        """
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GoogleAPIKey")
        self.model = model
        self.timeout = timeout

        if self.api_key:
            print(f"[LLM] Gemini ready (model: {self.model})")
        else:
            print("[LLM] GEMINI_API_KEY not set — AI replies will use fallbacks")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def query(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 800
    ) -> Optional[str]:
        """
        Generate text for a prompt.

        Args:
            prompt: Main prompt/question
            system_prompt: Optional instruction prepended to the prompt
            temperature: Sampling temperature (0.0-1.0, lower=more focused)
            max_tokens: Maximum tokens in response

        Returns:
            Generated text, or None if the provider failed or returned nothing
        """
        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        return self._generate([{"text": full_prompt}], temperature, max_tokens)

    def transcribe(self, audio: bytes, mime_type: str = "audio/ogg") -> Optional[str]:
        """
        Speech-to-text for a voice note.

        Args:
            audio: Raw audio bytes as downloaded from the messaging provider
            mime_type: Content type reported for the media (e.g. audio/ogg)

        Returns:
            Transcribed text, or None on failure
        """
        parts = [
            {"text": "Transcribe this voice message exactly as spoken. "
                     "Return only the transcription, without any commentary."},
            {"inline_data": {
                "mime_type": mime_type.split(";")[0].strip() or "audio/ogg",
                "data": base64.b64encode(audio).decode("ascii"),
            }},
        ]
        return self._generate(parts, temperature=0.0, max_tokens=1000)

    def _generate(self, parts: List[Dict], temperature: float,
                  max_tokens: int) -> Optional[str]:
        if not self.api_key:
            print("[LLM] Skipping request — no API key")
            return None

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

        try:
            response = requests.post(
                self.BASE_URL.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout
            )

            if response.status_code != 200:
                print(f"[LLM] Gemini returned status {response.status_code}: "
                      f"{response.text[:200]}")
                return None

            candidates = response.json().get("candidates") or []
            if not candidates:
                print("[LLM] Gemini returned no candidates")
                return None

            text = "".join(
                part.get("text", "")
                for part in candidates[0].get("content", {}).get("parts", [])
            ).strip()
            return text or None

        except requests.exceptions.Timeout:
            print(f"[LLM] Gemini request timed out ({self.timeout}s)")
            return None
        except Exception as e:
            print(f"[LLM] Gemini request failed - {e}")
            return None


def create_gemini_llm(api_key: Optional[str] = None,
                      model: str = "gemini-2.0-flash",
                      timeout: float = 30.0) -> LLMManager:
    """
    Create an LLM Manager backed by Gemini.

    Args:
        api_key: Gemini API key (uses GEMINI_API_KEY env var if not provided)
        model: Gemini model name
        timeout: Request timeout in seconds

    Returns:
        LLMManager configured for Gemini
    """
    return LLMManager(api_key=api_key, model=model, timeout=timeout)
