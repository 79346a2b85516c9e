"""
Translator - машинный перевод строк через LLM (litellm).

Провайдер переводит одну строку за вызов: задача TranslateLocaleJob
сама решает, что переводить, и сама выдерживает паузы между пачками.

Использование:
    provider = LLMTranslationProvider(model="gemini/gemini-2.0-flash")
    provider.translate("Welcome", "en", "es")   # -> "Bienvenido"
    provider.translate("Welcome", None, "es")   # язык источника - автоопределение
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

from .errors import MissingProvider

logger = logging.getLogger(__name__)

try:
    import litellm
    _HAS_LITELLM = True
except ImportError:
    litellm = None
    _HAS_LITELLM = False

MAX_RETRIES = 3
RETRY_DELAYS = [1.0, 2.0, 4.0]

LOCALE_NAMES: Dict[str, str] = {
    "en": "English", "ar": "Arabic", "bn": "Bengali", "es": "Spanish",
    "fr": "French", "de": "German", "ru": "Russian", "zh": "Chinese",
    "ja": "Japanese", "ko": "Korean", "pt": "Portuguese", "it": "Italian",
    "hi": "Hindi", "tr": "Turkish", "uk": "Ukrainian", "pl": "Polish",
    "nl": "Dutch",
}


def provider_available() -> bool:
    """Установлен ли litellm."""
    return _HAS_LITELLM


def ensure_provider_available() -> None:
    """
    Raises:
        MissingProvider: litellm не установлен
    """
    if not provider_available():
        raise MissingProvider("litellm")


def locale_name(locale: str) -> str:
    """'es' -> 'Spanish', 'pt-BR' -> 'Portuguese (pt-BR)'."""
    base = re.split(r"[-_]", locale)[0].lower()
    name = LOCALE_NAMES.get(base, locale)
    return name if base == locale.lower() or name == locale else f"{name} ({locale})"


class LLMTranslationProvider:
    """
    Переводчик строк через litellm.completion().

    Args:
        model: Идентификатор модели litellm
        temperature: Низкая = более точный перевод
        max_retries: Попыток при ошибке API
    """

    def __init__(self, model: str = "gemini/gemini-2.0-flash",
                 temperature: float = 0.3, max_retries: int = MAX_RETRIES):
        ensure_provider_available()
        if max_retries < 1:
            raise ValueError(f"max_retries должен быть >= 1, получено: {max_retries}")
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries

    def translate(self, text: str, source: Optional[str], target: str) -> str:
        """
        Переводит строку.

        Args:
            text: Исходный текст
            source: Язык оригинала (None - автоопределение)
            target: Целевой язык

        Returns:
            Перевод (или исходный текст, если модель вернула пустой ответ)
        """
        if not text:
            return text
        messages = self._build_messages(text, source, target)
        response = self._call_llm(messages)
        return self._extract_translation(response, text)

    def _build_messages(self, text: str, source: Optional[str],
                        target: str) -> List[Dict[str, str]]:
        source_note = (
            f"from {locale_name(source)} " if source else "(detect the source language) "
        )
        system = (
            "You are a professional software localization translator. "
            "Keep placeholders (:name, {name}, {{ name }}, %s), HTML tags, "
            "HTML entities and punctuation intact. "
            "Reply with the translation only, without quotes or explanations."
        )
        user = f"Translate {source_note}to {locale_name(target)}:\n\n{text}"
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def _call_llm(self, messages: List[Dict[str, str]]) -> str:
        """Вызов litellm с повтором и экспоненциальной паузой."""
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                response: Any = litellm.completion(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                )
                return response.choices[0].message.content or ""
            except Exception as exc:
                last_error = exc
                if attempt < self.max_retries - 1:
                    wait = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.warning("Ошибка LLM (попытка %d): %s. Повтор через %.0fс",
                                   attempt + 1, exc, wait)
                    time.sleep(wait)
        raise last_error

    @staticmethod
    def _extract_translation(response: str, original: str) -> str:
        """Убирает обёртки ответа (```, кавычки)."""
        cleaned = response.strip()
        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```\w*\n?|```$", "", cleaned).strip()
        if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
            cleaned = cleaned[1:-1]
        return cleaned or original
