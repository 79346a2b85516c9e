"""
Cache - in-memory кеш каталога переводов.

Принадлежит экземпляру TranslationCatalog. Ключи: (locale, kind), где kind:
    "all"      - объединённый вид (JSON + все namespace)
    "json"     - плоский словарь
    "ns:*"     - все namespace локали
    "ns:<имя>" - отдельный namespace
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

ALL = "all"
JSON = "json"
NAMESPACES = "ns:*"


def namespace_kind(name: str) -> str:
    return f"ns:{name}"


class TranslationCache:
    """Кеш данных локалей с явной инвалидацией."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], Any] = {}
        self._available: Optional[List[str]] = None

    def remember(self, locale: str, kind: str, loader: Callable[[], Any]) -> Any:
        """Возвращает значение из кеша, при промахе вызывает loader."""
        key = (locale, kind)
        if key not in self._entries:
            logger.debug("Кеш: промах %s:%s", locale, kind)
            self._entries[key] = loader()
        return self._entries[key]

    def has(self, locale: str, kind: str) -> bool:
        return (locale, kind) in self._entries

    def invalidate(self, locale: str, *kinds: str) -> None:
        """
        Сбрасывает указанные виды данных локали.
        Без kinds - сбрасывает всё по локали.
        """
        if not kinds:
            for key in [k for k in self._entries if k[0] == locale]:
                del self._entries[key]
            return
        for kind in kinds:
            self._entries.pop((locale, kind), None)

    def invalidate_flat(self, locale: str) -> None:
        """После записи плоского словаря."""
        self.invalidate(locale, JSON, ALL)

    def invalidate_namespace(self, locale: str, name: str) -> None:
        """После записи namespace-файла."""
        self.invalidate(locale, namespace_kind(name), NAMESPACES, ALL)

    # ── Список локалей ──

    def available(self, loader: Callable[[], List[str]]) -> List[str]:
        if self._available is None:
            self._available = loader()
        return self._available

    def forget_available(self) -> None:
        self._available = None

    def clear(self) -> None:
        self._entries.clear()
        self._available = None
