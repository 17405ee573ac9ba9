"""
Shared fakes for the Kisan Weather Bot test suite.

No test talks to Twilio, OpenWeatherMap or Gemini: every provider is
replaced by an in-memory stand-in that records its calls.
"""

import os
import sys
from datetime import datetime

import pytest

# Add parent directory to path to import kisan_bot
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kisan_bot.advisory import AdvisoryGenerator
from kisan_bot.directory import UserDirectory
from kisan_bot.dispatcher import CommandDispatcher
from kisan_bot.translation import Translator
from kisan_bot.weather import WeatherService, WeatherSnapshot, derive_alerts


def make_snapshot(city="Mumbai", temperature=28.0, wind_speed=3.0,
                  condition="Clouds", description="scattered clouds"):
    return WeatherSnapshot(
        city=city,
        temperature=temperature,
        description=description,
        condition=condition,
        wind_speed=wind_speed,
        alerts=derive_alerts(temperature, wind_speed, condition, description),
    )


class FakeWeather(WeatherService):
    """Returns canned snapshots per city; None simulates a provider failure."""

    def __init__(self, snapshots=None):
        super().__init__(api_key="test-key")
        self.snapshots = dict(snapshots or {})
        self.calls = []

    def get_weather(self, city):
        self.calls.append(city)
        result = self.snapshots.get(city)
        if isinstance(result, Exception):
            raise result
        return result


class FakeLLM:
    """
    Answers advisory prompts with a fixed reply and marks translations.

    reply=None simulates the provider failing for advice, translate=False
    simulates it failing for translations.
    """

    def __init__(self, reply="Grow millet, sorghum and cowpea.",
                 transcript="how is the weather", translate=True):
        self.reply = reply
        self.transcript = transcript
        self.translate = translate
        self.prompts = []
        self.translations = []
        self.audio = []

    @property
    def enabled(self):
        return True

    def query(self, prompt, system_prompt=None, temperature=0.3, max_tokens=800):
        if prompt.startswith("Translate"):
            self.translations.append(prompt)
            if not self.translate:
                return None
            return "[translated] " + prompt.split("\n\n", 1)[1]
        self.prompts.append(prompt)
        return self.reply

    def transcribe(self, audio, mime_type="audio/ogg"):
        self.audio.append((audio, mime_type))
        return self.transcript


class FakeWhatsApp:

    def __init__(self, fail_for=(), media=b"OggS-fake-audio"):
        self.sent = []
        self.media_sent = []
        self.fail_for = set(fail_for)
        self.media = media
        self.mode = "mock"

    def send_message(self, to_number, message_text):
        if to_number in self.fail_for:
            return {"status": "failed", "error": "simulated failure"}
        self.sent.append((to_number, message_text))
        return {"status": "mock", "message_sid": None}

    def send_media(self, to_number, media_url, caption=None):
        self.media_sent.append((to_number, media_url))
        return {"status": "mock", "message_sid": None}

    def download_media(self, media_url):
        if self.media is None:
            raise RuntimeError("download failed")
        return self.media

    def messages_to(self, number):
        return [text for to, text in self.sent if to == number]


class FakeVoice:

    def __init__(self, fail=False):
        self.fail = fail
        self.processed = []
        self.saved = []

    def process(self, audio, mime_type="audio/ogg", lang_code="en"):
        self.processed.append((audio, mime_type, lang_code))
        if self.fail:
            raise RuntimeError("speech-to-text failed")
        return b"ID3-fake-mp3"

    def save_response(self, audio):
        self.saved.append(audio)
        return "1700000000000_response.mp3"


@pytest.fixture
def directory():
    fixed = datetime(2026, 10, 19, 9, 30)
    return UserDirectory(clock=lambda: fixed)


@pytest.fixture
def weather():
    return FakeWeather({"Mumbai": make_snapshot()})


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def whatsapp():
    return FakeWhatsApp()


@pytest.fixture
def voice():
    return FakeVoice()


@pytest.fixture
def dispatcher(directory, weather, llm, whatsapp, voice):
    return CommandDispatcher(
        directory=directory,
        weather=weather,
        advisory=AdvisoryGenerator(llm),
        translator=Translator(llm),
        whatsapp=whatsapp,
        voice=voice,
        public_base_url="https://bot.example.com/",
    )


@pytest.fixture
def known_user(dispatcher):
    """A user who already got the welcome message."""
    dispatcher.handle_text("whatsapp:+919800000001", "hi")
    return "+919800000001"
