"""
Command dispatcher for inbound WhatsApp messages.

One inbound message produces exactly one outbound reply. Text commands are
tried against an ordered list of matchers (first match wins) and fall back
to the help text; voice notes skip the matchers and go through the voice
pipeline instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from kisan_bot.advisory import AdvisoryGenerator
from kisan_bot.directory import UserDirectory
from kisan_bot.translation import Translator, language_name
from kisan_bot.voice import VoicePipeline, VoicePipelineError
from kisan_bot.weather import WeatherService
from kisan_bot.whatsapp import WhatsAppService, delivered, strip_channel_prefix

WELCOME_MESSAGE = (
    "👋 Welcome! Choose your language by sending:\n"
    "1. Hindi\n"
    "2. Marathi\n"
    "3. English\n\n"
    "Then send 'subscribe Mumbai' to start."
)

HELP_MESSAGE = (
    "🤖 Weather Alert Bot Commands:\n\n"
    "📍 *subscribe [city]* - Get weather alerts\n"
    "❌ *unsubscribe* - Stop alerts\n"
    "🌤️ *weather [city]* - Current weather + farming tips\n"
    "📋 *status* - Your city, language and alerts\n"
    "🗣️ *1 / 2 / 3* - Hindi / Marathi / English\n"
    "📝 *log [activity]* - Record a farm activity\n"
    "📖 *view log* - Show your activities\n"
    "🧹 *clear log* - Delete your activities\n"
    "❓ *help* - Show this message\n\n"
    "Example: \"subscribe Mumbai\""
)

SUBSCRIBE_USAGE = 'Please specify a city. Example: "subscribe Mumbai"'
WEATHER_USAGE = 'Please specify a city. Example: "weather Mumbai"'
WEATHER_FAILURE = "Sorry, could not fetch weather data. Please check the city name."
LOG_USAGE = 'Please tell me what you did. Example: "log sprayed neem oil on cotton"'
EMPTY_LOG = "📭 Nothing logged yet. Send 'log [activity]' to add one."
VOICE_APOLOGY = "Sorry, could not process your audio."

STATUS_COMMANDS = ("status", "/status", "my status")
LANGUAGE_SELECTORS = {"1": "hi", "2": "mr", "3": "en"}


@dataclass
class InboundMessage:
    sender: str
    body: str = ""
    num_media: int = 0
    media_content_type: str = ""
    media_url: str = ""

    @property
    def is_audio(self) -> bool:
        return self.num_media > 0 and self.media_content_type.startswith("audio")


class CommandDispatcher:

    def __init__(self, directory: UserDirectory, weather: WeatherService,
                 advisory: AdvisoryGenerator, translator: Translator,
                 whatsapp: WhatsAppService, voice: VoicePipeline,
                 public_base_url: str = "") -> None:
        self.directory = directory
        self.weather = weather
        self.advisory = advisory
        self.translator = translator
        self.whatsapp = whatsapp
        self.voice = voice
        self.public_base_url = public_base_url.rstrip("/")

        # priority order, first match wins
        self._matchers = [
            self._status,
            self._language,
            self._activity_log,
            self._subscribe,
            self._unsubscribe,
            self._weather,
        ]

    def handle_message(self, message: InboundMessage) -> Optional[str]:
        """Entry point for the webhook. Returns the text reply sent, if any."""
        if message.is_audio:
            self.handle_voice(message)
            return None
        return self.handle_text(message.sender, message.body)

    def handle_text(self, sender: str, body: str) -> str:
        user_id = strip_channel_prefix(sender)
        text = (body or "").strip()

        if self.directory.upsert_default(user_id):
            print(f"[Dispatcher] New user {user_id}")
            self._deliver(user_id, WELCOME_MESSAGE)
            return WELCOME_MESSAGE

        reply = self.compose_reply(user_id, text)

        record = self.directory.get(user_id)
        if record and record.language != "en":
            reply = self.translator.translate(reply, record.language)

        self._deliver(user_id, reply)
        return reply

    def compose_reply(self, user_id: str, text: str) -> str:
        command = text.lower()
        for matcher in self._matchers:
            reply = matcher(user_id, text, command)
            if reply is not None:
                return reply
        return HELP_MESSAGE

    def handle_voice(self, message: InboundMessage) -> None:
        user_id = strip_channel_prefix(message.sender)
        record = self.directory.get(user_id)
        lang = record.language if record else "en"

        try:
            audio = self.whatsapp.download_media(message.media_url)
            reply_audio = self.voice.process(audio, message.media_content_type, lang)
            filename = self.voice.save_response(reply_audio)
            result = self.whatsapp.send_media(
                user_id, f"{self.public_base_url}/responses/{filename}")
            if not delivered(result):
                raise VoicePipelineError(f"media send failed: {result.get('error')}")
        except Exception as e:
            print(f"[Dispatcher] Audio handling error for {user_id}: {e}")
            self._deliver(user_id, VOICE_APOLOGY)

    # ──────────────────────────────────────────────────────────────────
    # Matchers: (user_id, original text, lowercased text) -> reply or None
    # ──────────────────────────────────────────────────────────────────

    def _status(self, user_id: str, text: str, command: str) -> Optional[str]:
        if command not in STATUS_COMMANDS:
            return None
        record = self.directory.get(user_id)
        return (
            "📋 Your status:\n"
            f"📍 City: {record.location or 'not set'}\n"
            f"🗣️ Language: {language_name(record.language)}\n"
            f"🔔 Alerts: {'subscribed' if record.subscribed else 'not subscribed'}"
        )

    def _language(self, user_id: str, text: str, command: str) -> Optional[str]:
        code = LANGUAGE_SELECTORS.get(command)
        if code is None:
            return None
        self.directory.set_language(user_id, code)
        return f"✅ Language set to {language_name(code)}."

    def _activity_log(self, user_id: str, text: str, command: str) -> Optional[str]:
        if command == "view log":
            record = self.directory.get(user_id)
            if not record.activity_log:
                return EMPTY_LOG
            lines = [f"{entry.timestamp}: {entry.text}" for entry in record.activity_log]
            return "📖 Your farm log:\n" + "\n".join(lines)

        if command == "clear log":
            self.directory.clear_activities(user_id)
            return "🧹 Your farm log has been cleared."

        if command == "log" or command.startswith("log "):
            activity = _argument(text, "log")
            if not activity:
                return LOG_USAGE
            self.directory.append_activity(user_id, activity)
            return f"📝 Logged: {activity}"

        return None

    def _subscribe(self, user_id: str, text: str, command: str) -> Optional[str]:
        if not command.startswith("subscribe"):
            return None
        city = _argument(text, "subscribe")
        if not city:
            return SUBSCRIBE_USAGE
        self.directory.subscribe(user_id, city)
        return (
            f"✅ Subscribed to weather alerts for {city}!\n\n"
            "You'll receive alerts for:\n"
            "• Extreme temperatures\n"
            "• Heavy rain/storms\n"
            "• Strong winds\n\n"
            "Send \"unsubscribe\" to stop alerts."
        )

    def _unsubscribe(self, user_id: str, text: str, command: str) -> Optional[str]:
        if command != "unsubscribe":
            return None
        self.directory.unsubscribe(user_id)
        return "❌ Unsubscribed from weather alerts."

    def _weather(self, user_id: str, text: str, command: str) -> Optional[str]:
        if not command.startswith("weather"):
            return None
        record = self.directory.get(user_id)
        city = _argument(text, "weather") or record.location
        if not city:
            return WEATHER_USAGE

        snapshot = self.weather.get_weather(city)
        if snapshot is None:
            return WEATHER_FAILURE

        response = self.weather.format_weather_english(snapshot)
        advice = self.advisory.get_crop_advice(snapshot, record.language)
        response += f"\n\n🌱 *Farming Tips*:\n{advice}"
        return response

    # ──────────────────────────────────────────────────────────────────

    def _deliver(self, user_id: str, text: str) -> None:
        result = self.whatsapp.send_message(user_id, text)
        if not delivered(result):
            print(f"[Dispatcher] Reply to {user_id} not delivered: {result.get('error')}")


def _argument(text: str, keyword: str) -> str:
    """Text after a command keyword, trimmed, with the user's casing kept."""
    return text[len(keyword):].strip()
