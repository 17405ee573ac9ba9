"""
Voice-note pipeline: speech-to-text → Gemini answer → text-to-speech.

The synthesized MP3 is written to the responses directory, which the HTTP
server exposes under /responses so the messaging provider can fetch it.
"""

from __future__ import annotations

import io
import time
from pathlib import Path

from gtts import gTTS

from kisan_bot.llm_manager import LLMManager
from kisan_bot.translation import language_name

VOICE_SYSTEM_PROMPT = (
    "You are a friendly farming assistant answering a farmer's voice message. "
    "Reply in plain spoken sentences without markdown, lists or emojis, "
    "in under 600 characters."
)


class VoicePipelineError(Exception):
    """Raised when any stage of the voice pipeline fails."""


class VoicePipeline:

    def __init__(self, llm: LLMManager, responses_dir: str = "responses",
                 timeout: float = 10.0) -> None:
        self.llm = llm
        self.responses_dir = Path(responses_dir)
        self.timeout = timeout
        self.responses_dir.mkdir(parents=True, exist_ok=True)

    def transcribe(self, audio: bytes, mime_type: str) -> str:
        text = self.llm.transcribe(audio, mime_type)
        if not text:
            raise VoicePipelineError("transcription returned no text")
        return text

    def answer(self, transcript: str, lang_code: str = "en") -> str:
        prompt = f"{transcript}\n\nRespond in {language_name(lang_code)}."
        reply = self.llm.query(prompt, system_prompt=VOICE_SYSTEM_PROMPT)
        if not reply:
            raise VoicePipelineError("no AI reply for transcript")
        return reply

    def synthesize(self, text: str, lang_code: str = "en") -> bytes:
        buffer = io.BytesIO()
        try:
            gTTS(text=text, lang=lang_code, timeout=self.timeout).write_to_fp(buffer)
        except Exception as e:
            raise VoicePipelineError(f"speech synthesis failed: {e}") from e
        audio = buffer.getvalue()
        if not audio:
            raise VoicePipelineError("speech synthesis produced no audio")
        return audio

    def process(self, audio: bytes, mime_type: str = "audio/ogg",
                lang_code: str = "en") -> bytes:
        transcript = self.transcribe(audio, mime_type)
        print(f"[Voice] Transcript: {transcript[:80]}")
        reply = self.answer(transcript, lang_code)
        return self.synthesize(reply, lang_code)

    def save_response(self, audio: bytes) -> str:
        """Persist synthesized audio and return its file name."""
        filename = f"{int(time.time() * 1000)}_response.mp3"
        (self.responses_dir / filename).write_bytes(audio)
        print(f"[Voice] Saved {filename} ({len(audio)} bytes)")
        return filename
