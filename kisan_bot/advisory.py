from __future__ import annotations

from kisan_bot.llm_manager import LLMManager
from kisan_bot.translation import language_name
from kisan_bot.weather import WeatherSnapshot

ADVICE_FALLBACK = "Could not fetch AI advice right now."

ADVISOR_SYSTEM_PROMPT = (
    "You are an expert agricultural advisor. You can suggest crops, pesticides, "
    "and fertilizers based on weather conditions. Provide just the response for "
    "the query in the specified language without any additional commentary. "
    "Provide plain text without any markdown or formatting."
)


class AdvisoryGenerator:
    """Turns a weather snapshot into short farming advice."""

    def __init__(self, llm: LLMManager) -> None:
        self.llm = llm

    def build_prompt(self, snapshot: WeatherSnapshot, lang_code: str = "en") -> str:
        return (
            f"Given this weather:\n"
            f"Temperature: {snapshot.temperature}°C,\n"
            f"Conditions: {snapshot.description},\n"
            f"Wind speed: {snapshot.wind_speed} m/s.\n\n"
            f"Suggest 3 suitable crops and 1 pesticide and 1 fertilizer "
            f"recommendation for farmers.\n"
            f"Keep the advice short and within 1400 characters.\n\n"
            f"Respond in {language_name(lang_code)}."
        )

    def get_crop_advice(self, snapshot: WeatherSnapshot, lang_code: str = "en") -> str:
        """Advice text, or ADVICE_FALLBACK when the provider fails."""
        advice = self.llm.query(self.build_prompt(snapshot, lang_code),
                                system_prompt=ADVISOR_SYSTEM_PROMPT)
        if not advice:
            print(f"[Advisory] No advice for {snapshot.city} — using fallback")
            return ADVICE_FALLBACK
        return advice
