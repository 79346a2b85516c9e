"""
Exporter - генерация TypeScript-модулей переводов для фронтенда.

Для каждой локали: <output>/<locale>.ts с объединённым видом каталога
(JSON + namespace в dot-нотации) и переводами vendor-пакетов.
После всех локалей: <output>/index.ts - реестр всех доступных локалей
(а не только сгенерированных в этом запуске).

Vendor-переводы: lang/vendor/<package>/<locale>/<file>.yaml -> ключи
'<package>::<file>.<path>'. Переводы приложения имеют приоритет.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from . import dotted
from .catalog import NAMESPACE_SUFFIX, VENDOR_DIR, TranslationCatalog

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_JS_RESERVED = {
    "break", "case", "catch", "class", "const", "continue", "debugger", "default",
    "delete", "do", "else", "export", "extends", "false", "finally", "for",
    "function", "if", "import", "in", "instanceof", "new", "null", "return",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var", "void",
    "while", "with", "yield", "let", "static", "enum", "await",
}


def ts_identifier(locale: str) -> str:
    """Безопасный идентификатор TS для локали: 'en-US' -> 'en_US'."""
    name = re.sub(r"\W", "_", locale)
    if not name or name[0].isdigit() or name in _JS_RESERVED:
        name = f"_{name}"
    return name


def unique_identifiers(locales: Sequence[str]) -> Dict[str, str]:
    """
    Идентификаторы для реестра без коллизий.

    'en-US' и 'en_US' дают одно имя, второй локали достаётся 'en_US_2'.
    """
    result: Dict[str, str] = {}
    used = set()
    for locale in locales:
        base = ts_identifier(locale)
        name, n = base, 1
        while name in used:
            n += 1
            name = f"{base}_{n}"
        used.add(name)
        result[locale] = name
    return result


def count_translations(translations: Dict[str, Any]) -> int:
    """Рекурсивно считает листья."""
    count = 0
    for value in translations.values():
        if isinstance(value, dict):
            count += count_translations(value)
        else:
            count += 1
    return count


@dataclass
class ExportReport:
    """Итог генерации."""
    output_path: Path
    files: List[Path] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    index_path: Optional[Path] = None


class TypeScriptExporter:
    """
    Генератор TypeScript-файлов из каталога переводов.

    Args:
        catalog: Каталог переводов
        output_path: Директория для .ts файлов
        now: Источник времени (для тестов)
    """

    def __init__(self, catalog: TranslationCatalog, output_path: Path,
                 now: Optional[Callable[[], datetime]] = None):
        self.catalog = catalog
        self.output_path = Path(output_path)
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=False,
            keep_trailing_newline=True,
        )

    @property
    def vendor_path(self) -> Path:
        return self.catalog.lang_path / VENDOR_DIR

    def timestamp(self) -> str:
        return self._now().isoformat(timespec="seconds")

    # ── Данные ──

    def collect(self, locale: str) -> Dict[str, Any]:
        """Переводы приложения + vendor (только отсутствующие ключи)."""
        translations = dict(self.catalog.get(locale))
        return self._merge_vendor(locale, translations)

    def _merge_vendor(self, locale: str, translations: Dict[str, Any]) -> Dict[str, Any]:
        if not self.vendor_path.is_dir():
            return translations

        for package_path in sorted(p for p in self.vendor_path.iterdir() if p.is_dir()):
            package_locale = package_path / locale
            if not package_locale.is_dir():
                continue

            for file_path in sorted(package_locale.glob(f"*{NAMESPACE_SUFFIX}")):
                vendor = TranslationCatalog._load_namespace_file(file_path)
                prefix = f"{package_path.name}::{file_path.stem}."
                for key, value in dotted.flatten(vendor, prefix).items():
                    if key not in translations:
                        translations[key] = value
        return translations

    # ── Генерация ──

    def generate_locale(self, locale: str,
                        translations: Optional[Dict[str, Any]] = None) -> Path:
        """Генерирует <locale>.ts."""
        if translations is None:
            translations = self.collect(locale)
        content = self._env.get_template("locale.ts.j2").render(
            locale=locale,
            identifier=ts_identifier(locale),
            timestamp=self.timestamp(),
            count=count_translations(translations),
            translations=json.dumps(translations, ensure_ascii=False, indent=4),
        )

        path = self.output_path / f"{locale}.ts"
        path.write_text(content, encoding="utf-8")
        logger.info("Сгенерирован %s (%d ключей)", path, len(translations))
        return path

    def generate_index(self) -> Path:
        """Генерирует index.ts по всем доступным локалям."""
        locales = self.catalog.available_locales()
        identifiers = unique_identifiers(locales)
        content = self._env.get_template("index.ts.j2").render(
            timestamp=self.timestamp(),
            locales=[
                {"code": code, "identifier": identifiers[code]} for code in locales
            ],
            locale_list=json.dumps(locales, ensure_ascii=False),
        )

        path = self.output_path / "index.ts"
        path.write_text(content, encoding="utf-8")
        logger.info("Сгенерирован реестр %s (%d локалей)", path, len(locales))
        return path

    def generate(self, locales: Sequence[str],
                 progress: Optional[Callable[[str, Path, int], None]] = None) -> ExportReport:
        """
        Генерирует файлы выбранных локалей и реестр.

        Args:
            progress: callback(locale, path, count) после каждого файла
        """
        if not self.output_path.is_dir():
            self.output_path.mkdir(parents=True, exist_ok=True)
            logger.info("Создана директория %s", self.output_path)

        report = ExportReport(output_path=self.output_path)
        for locale in locales:
            translations = self.collect(locale)
            path = self.generate_locale(locale, translations)
            count = count_translations(translations)
            report.files.append(path)
            report.counts[locale] = count
            if progress:
                progress(locale, path, count)

        report.index_path = self.generate_index()
        return report
