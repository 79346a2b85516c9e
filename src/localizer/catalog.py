"""
Catalog - управление файлами переводов.

Структура файлов:
    lang/
        en.json              - плоский словарь {"Hello": "Hello", ...}
        en/
            validation.yaml  - namespace: вложенный словарь
            messages.yaml
        vendor/              - переводы пакетов (только чтение, см. exporter)

Объединённый вид локали (get) - плоский словарь плюс все namespace,
развёрнутые в ключи 'namespace.dotted.path'.

Отсутствующие файлы читаются как пустые, битые - как пустые с предупреждением.
Кеш принадлежит экземпляру каталога и сбрасывается на каждой записи только
для затронутой локали.
"""

import copy
import html
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from . import dotted
from .cache import ALL, JSON, NAMESPACES, TranslationCache, namespace_kind
from .errors import InvalidKeyFormat

logger = logging.getLogger(__name__)

NAMESPACE_SUFFIX = ".yaml"
VENDOR_DIR = "vendor"


def sanitize(value: Any) -> str:
    """HTML-экранирование значения перед записью (&, <, >, кавычки)."""
    return html.escape(str(value), quote=True)


def parse_namespaced_key(key: str) -> Tuple[str, str]:
    """
    Делит ключ 'namespace.nested.path' на (namespace, 'nested.path').

    Raises:
        InvalidKeyFormat: пустой сегмент namespace
    """
    namespace, _, nested = key.partition(".")
    if not namespace.strip():
        raise InvalidKeyFormat(key)
    return namespace, nested


class TranslationCatalog:
    """
    Хранилище переводов: JSON-словари и YAML-namespace для каждой локали.

    Args:
        lang_path: Директория переводов
        default_locale: Локаль для операций без явного locale
        cache: Кеш (по умолчанию собственный)
    """

    def __init__(self, lang_path: Path, default_locale: str = "en",
                 cache: Optional[TranslationCache] = None):
        self.lang_path = Path(lang_path)
        self.default_locale = default_locale
        self.cache = cache if cache is not None else TranslationCache()

    # ── Пути ──

    def json_path(self, locale: str) -> Path:
        return self.lang_path / f"{locale}.json"

    def locale_path(self, locale: str) -> Path:
        return self.lang_path / locale

    def namespace_path(self, locale: str, name: str) -> Path:
        return self.locale_path(locale) / f"{name}{NAMESPACE_SUFFIX}"

    # ── Чтение ──

    def get(self, locale: str) -> Dict[str, Any]:
        """Все переводы локали: JSON + namespace в dot-нотации."""
        return self.cache.remember(locale, ALL, lambda: self._load_all(locale))

    def get_flat(self, locale: str) -> Dict[str, Any]:
        """Плоский словарь. Создаёт пустой файл, если его нет."""
        return self.cache.remember(locale, JSON, lambda: self._load_json(locale))

    def get_namespace(self, locale: str, name: str) -> Dict[str, Any]:
        """Вложенный словарь namespace (пустой, если файла нет)."""
        return self.cache.remember(
            locale, namespace_kind(name),
            lambda: self._load_namespace_file(self.namespace_path(locale, name))
        )

    def get_namespaces(self, locale: str) -> Dict[str, Dict[str, Any]]:
        """Все namespace локали: {имя: вложенный словарь}."""
        return self.cache.remember(locale, NAMESPACES, lambda: self._load_namespaces(locale))

    def exists(self, locale: str) -> bool:
        return self.json_path(locale).exists() or self.locale_path(locale).is_dir()

    def stats(self, locale: str) -> Dict[str, int]:
        """Количество ключей: плоских, в namespace и всего."""
        flat = len(self.get_flat(locale))
        namespaced = sum(
            len(dotted.flatten(data)) for data in self.get_namespaces(locale).values()
        )
        return {"flat": flat, "namespaced": namespaced, "total": flat + namespaced}

    def available_locales(self) -> List[str]:
        """Локали: *.json файлы и поддиректории (кроме vendor)."""
        return self.cache.available(self._discover_locales)

    # ── Запись ──

    def set_flat(self, key: str, value: Optional[str] = None,
                 locale: Optional[str] = None) -> None:
        """
        Устанавливает ключ плоского словаря.

        Без value значением становится сам ключ (плейсхолдер).
        Значение экранируется как HTML.
        """
        locale = locale or self.default_locale
        data = dict(self.get_flat(locale))
        data[key] = sanitize(key if value is None else value)
        self._write_json(locale, data)
        self.cache.invalidate_flat(locale)

    def set_namespaced(self, key: str, value: Any, locale: Optional[str] = None) -> None:
        """Устанавливает ключ 'namespace.nested.path'."""
        locale = locale or self.default_locale
        namespace, nested = parse_namespaced_key(key)

        data = copy.deepcopy(self.get_namespace(locale, namespace))
        if nested:
            dotted.set_path(data, nested, value)
        elif isinstance(value, dict):
            data = value
        else:
            raise InvalidKeyFormat(key)

        self._write_namespace(locale, namespace, data)
        self.cache.invalidate_namespace(locale, namespace)

    def bulk_set_flat(self, items: Dict[str, Any], locale: Optional[str] = None) -> None:
        """Рекурсивный merge items в плоский словарь."""
        locale = locale or self.default_locale
        data = dotted.replace_recursive(self.get_flat(locale), items)
        self._write_json(locale, data)
        self.cache.invalidate_flat(locale)

    def bulk_set_namespaced(self, namespace: str, items: Dict[str, Any],
                            locale: Optional[str] = None) -> None:
        """Рекурсивный merge items в namespace."""
        locale = locale or self.default_locale
        if not namespace.strip():
            raise InvalidKeyFormat(namespace)
        data = dotted.replace_recursive(self.get_namespace(locale, namespace), items)
        self._write_namespace(locale, namespace, data)
        self.cache.invalidate_namespace(locale, namespace)

    def unset_flat(self, key: str, locale: Optional[str] = None) -> None:
        """Удаляет ключ плоского словаря."""
        locale = locale or self.default_locale
        if not self.json_path(locale).exists():
            return
        data = dict(self.get_flat(locale))
        if key not in data:
            return
        del data[key]
        self._write_json(locale, data)
        self.cache.invalidate_flat(locale)

    def unset_namespaced(self, key: str, locale: Optional[str] = None) -> None:
        """Удаляет вложенный ключ namespace. Нет файла или ключа - no-op."""
        locale = locale or self.default_locale
        namespace, nested = parse_namespaced_key(key)
        path = self.namespace_path(locale, namespace)
        if not path.exists() or not nested:
            return

        data = copy.deepcopy(self.get_namespace(locale, namespace))
        if not dotted.has_path(data, nested):
            return
        dotted.forget_path(data, nested)
        self._write_namespace(locale, namespace, data)
        self.cache.invalidate_namespace(locale, namespace)

    # ── Жизненный цикл локали ──

    def create(self, locale: str, from_locale: Optional[str] = None) -> None:
        """Создаёт локаль (пустую или копию from_locale)."""
        data = dict(self.get_flat(from_locale)) if from_locale else {}
        self._write_json(locale, data)
        self.locale_path(locale).mkdir(parents=True, exist_ok=True)

        if from_locale and self.locale_path(from_locale).is_dir():
            self._copy_namespaces(from_locale, locale)

        self.cache.invalidate(locale)
        self.cache.forget_available()
        logger.info("Локаль создана: %s%s", locale,
                    f" (из {from_locale})" if from_locale else "")

    def rename(self, old_locale: str, new_locale: str,
               from_locale: Optional[str] = None) -> None:
        """
        Переименовывает локаль.

        Если from_locale задан и отличается от new_locale - new_locale
        пересоздаётся копией from_locale, old_locale не трогается.
        """
        if from_locale and from_locale != new_locale:
            self.delete(new_locale)
            self.create(new_locale, from_locale)
            return
        if old_locale == new_locale:
            return

        old_json, new_json = self.json_path(old_locale), self.json_path(new_locale)
        old_dir, new_dir = self.locale_path(old_locale), self.locale_path(new_locale)

        if old_json.exists():
            shutil.move(str(old_json), str(new_json))
        if old_dir.is_dir():
            if new_dir.is_dir():
                shutil.rmtree(new_dir)
            shutil.move(str(old_dir), str(new_dir))

        self.cache.invalidate(old_locale)
        self.cache.invalidate(new_locale)
        self.cache.forget_available()
        logger.info("Локаль переименована: %s -> %s", old_locale, new_locale)

    def delete(self, locale: str) -> None:
        """Удаляет JSON-файл и директорию локали."""
        json_path = self.json_path(locale)
        if json_path.exists():
            json_path.unlink()
        locale_dir = self.locale_path(locale)
        if locale_dir.is_dir():
            shutil.rmtree(locale_dir)

        self.cache.invalidate(locale)
        self.cache.forget_available()
        logger.info("Локаль удалена: %s", locale)

    def clear_cache(self, locale: Optional[str] = None) -> None:
        """Сбрасывает кеш локали (или весь)."""
        if locale is None:
            self.cache.clear()
        else:
            self.cache.invalidate(locale)

    # ── Внутреннее ──

    def _load_all(self, locale: str) -> Dict[str, Any]:
        data = dict(self.get_flat(locale))
        for name, translations in self.get_namespaces(locale).items():
            data.update(dotted.flatten(translations, f"{name}."))
        return data

    def _load_json(self, locale: str) -> Dict[str, Any]:
        path = self.json_path(locale)
        if not path.exists():
            self._write_json(locale, {})
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Битый JSON %s, читается как пустой: %s", path, exc)
            return {}

        if not isinstance(data, dict):
            logger.warning("JSON %s не является объектом, читается как пустой", path)
            return {}
        return data

    def _load_namespaces(self, locale: str) -> Dict[str, Dict[str, Any]]:
        locale_dir = self.locale_path(locale)
        if not locale_dir.is_dir():
            return {}
        return {
            path.stem: self.get_namespace(locale, path.stem)
            for path in sorted(locale_dir.glob(f"*{NAMESPACE_SUFFIX}"))
        }

    @staticmethod
    def _load_namespace_file(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            logger.warning("Битый YAML %s, читается как пустой: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _discover_locales(self) -> List[str]:
        if not self.lang_path.is_dir():
            return []
        locales = {path.stem for path in self.lang_path.glob("*.json")}
        locales.update(
            path.name for path in self.lang_path.iterdir()
            if path.is_dir() and path.name != VENDOR_DIR and not path.name.startswith(".")
        )
        return sorted(locales)

    def _write_json(self, locale: str, data: Dict[str, Any]) -> None:
        path = self.json_path(locale)
        if not path.exists():
            self.cache.forget_available()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=4)
        logger.debug("Записан %s (%d ключей)", path, len(data))

    def _write_namespace(self, locale: str, name: str, data: Dict[str, Any]) -> None:
        path = self.namespace_path(locale, name)
        if not path.parent.is_dir():
            self.cache.forget_available()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False,
                           default_flow_style=False)
        logger.debug("Записан %s", path)

    def _copy_namespaces(self, from_locale: str, to_locale: str) -> None:
        target = self.locale_path(to_locale)
        target.mkdir(parents=True, exist_ok=True)
        for path in self.locale_path(from_locale).glob(f"*{NAMESPACE_SUFFIX}"):
            shutil.copy2(path, target / path.name)
