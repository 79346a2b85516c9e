"""
Jobs - фоновая задача перевода локали.

TranslateLocaleJob переводит только отсутствующие или пустые значения
целевой локали: сначала плоский словарь, затем все namespace.
Каждые `tries` переведённых строк - пауза `sleep` секунд (rate limit API).

Задача синхронная и не зависит от очереди: CLI кладёт её в очередь
(job_queue.FileJobQueue), воркер вызывает handle(). Ошибка провайдера прерывает
задачу целиком, очередь повторяет её с начала.
"""

import html
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from .catalog import TranslationCatalog

logger = logging.getLogger(__name__)


class TranslationProvider(Protocol):
    def translate(self, text: str, source: Optional[str], target: str) -> str:
        ...


def is_translated(value: Any) -> bool:
    """Есть ли непустое значение."""
    if value is None:
        return False
    if isinstance(value, (dict, str)):
        return bool(value)
    return True


@dataclass
class TranslateLocaleJob:
    """
    Задача перевода source_locale -> target_locale.

    Attributes:
        tries: Переводов до паузы
        sleep: Пауза (секунды)
    """
    source_locale: str
    target_locale: str
    tries: int = 10
    sleep: float = 1.0

    name = "translate_locale"

    def __post_init__(self):
        self._counter = 0
        self._stats = {"flat": 0, "namespaced": 0, "skipped": 0}

    # ── Сериализация для очереди ──

    def to_payload(self) -> Dict[str, Any]:
        return {"job": self.name, **asdict(self)}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TranslateLocaleJob":
        return cls(
            source_locale=payload["source_locale"],
            target_locale=payload["target_locale"],
            tries=int(payload.get("tries", 10)),
            sleep=float(payload.get("sleep", 1.0)),
        )

    @property
    def provider_source(self) -> Optional[str]:
        """None - если source == target (автоопределение языка)."""
        if self.source_locale == self.target_locale:
            return None
        return self.source_locale

    # ── Выполнение ──

    def handle(self, catalog: TranslationCatalog, provider: TranslationProvider,
               sleeper: Callable[[float], None] = time.sleep) -> Dict[str, int]:
        """
        Выполняет перевод.

        Returns:
            Счётчики: flat, namespaced, skipped
        """
        self._counter = 0
        self._stats = {"flat": 0, "namespaced": 0, "skipped": 0}
        self._provider = provider
        self._sleeper = sleeper

        logger.info("Перевод %s -> %s", self.source_locale, self.target_locale)
        self._translate_flat(catalog)
        self._translate_namespaces(catalog)
        logger.info("Перевод %s -> %s завершён: %s",
                    self.source_locale, self.target_locale, self._stats)
        return dict(self._stats)

    def _translate_flat(self, catalog: TranslationCatalog) -> None:
        source = dict(catalog.get_flat(self.source_locale))
        target = catalog.get_flat(self.target_locale)

        for key, value in source.items():
            if is_translated(target.get(key)):
                self._stats["skipped"] += 1
                continue

            # set_flat экранирует заново
            text = html.unescape(value) if isinstance(value, str) else value
            translated = self._translate_text(text)
            catalog.set_flat(key, translated, self.target_locale)
            self._stats["flat"] += 1
            self._tick()

    def _translate_namespaces(self, catalog: TranslationCatalog) -> None:
        source = catalog.get_namespaces(self.source_locale)
        for namespace, translations in source.items():
            target = catalog.get_namespace(self.target_locale, namespace)
            result = self._translate_tree(translations, target)
            catalog.bulk_set_namespaced(namespace, result, self.target_locale)

    def _translate_tree(self, source: Dict[str, Any], target: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, value in source.items():
            existing = target.get(key)
            if isinstance(value, dict):
                result[key] = self._translate_tree(
                    value, existing if isinstance(existing, dict) else {}
                )
                continue

            if is_translated(existing):
                result[key] = existing
                self._stats["skipped"] += 1
                continue

            result[key] = self._translate_text(value)
            self._stats["namespaced"] += 1
            self._tick()
        return result

    def _translate_text(self, text: Any) -> Any:
        if not text:
            return text
        return self._provider.translate(str(text), self.provider_source, self.target_locale)

    def _tick(self) -> None:
        """Пауза после каждых `tries` переводов."""
        self._counter += 1
        if self._counter >= self.tries:
            self._counter = 0
            logger.debug("Пауза %.1fс (rate limit)", self.sleep)
            self._sleeper(self.sleep)
