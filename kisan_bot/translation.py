from __future__ import annotations

from typing import Dict

from kisan_bot.llm_manager import LLMManager

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "mr": "Marathi",
}


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, "English")


class Translator:

    def __init__(self, llm: LLMManager) -> None:
        self.llm = llm

    def translate(self, text: str, lang_code: str) -> str:
        """Translate a reply into the user's language; returns the original text on failure."""
        if lang_code == "en" or not text:
            return text

        prompt = (
            f"Translate the following text to {language_name(lang_code)}. "
            f"Keep emojis, numbers and line breaks. Return only the translation.\n\n"
            f"{text}"
        )
        translated = self.llm.query(prompt, temperature=0.1)
        if not translated:
            print(f"[Translation] Failed for '{lang_code}' — sending original text")
            return text
        return translated
