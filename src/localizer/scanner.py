"""
Scanner - извлекает ключи перевода из исходного кода проекта.

Чисто regex-обработка, без разбора синтаксиса языка:
1. Ищем вызовы __('...'), trans("..."), lang('...') (одинарные и двойные кавычки)
2. Снимаем экранирование с литерала (\\', \\n, \\x41 ...)
3. Классифицируем ключ:
   - namespace ('auth.failed', 'validation.email.required') -> lang/<locale>/<ns>.yaml
   - плоский ('Hello World', 'End with dot.')             -> lang/<locale>.json

Известное ограничение: эвристика ошибается на строках вроде 'Mr.Smith'
и 'Hello. World.' (классифицируются как namespace 'Mr' и 'Hello').
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from . import dotted
from .catalog import TranslationCatalog

logger = logging.getLogger(__name__)

FLAT = "flat"
NAMESPACED = "namespaced"

DEFAULT_FUNCTIONS = ("__", "trans", "lang")

_NAMESPACE_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")

_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "v": "\v",
    "f": "\f", "a": "\a", "b": "\b",
}
_ESCAPE = re.compile(r"\\(x[0-9A-Fa-f]{1,2}|[0-7]{1,3}|.)", re.DOTALL)

ProgressCallback = Callable[[int, int, Path], None]


def _call_patterns(functions: Sequence[str]) -> List[re.Pattern]:
    """Regex для литерала в одинарных и двойных кавычках."""
    names = "|".join(re.escape(name) for name in functions)
    call = rf"(?<![\w$])(?:{names})\s*\(\s*"
    return [
        re.compile(call + r"'((?:[^'\\]|\\.)*)'", re.DOTALL),
        re.compile(call + r'"((?:[^"\\]|\\.)*)"', re.DOTALL),
    ]


def unescape_literal(text: str) -> str:
    """Снимает C-экранирование. Неизвестная последовательность -> символ без '\\'."""
    def replace(match: re.Match) -> str:
        seq = match.group(1)
        if seq[0] == "x" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        if seq[0] in "01234567":
            return chr(int(seq, 8) & 0xFF)
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE.sub(replace, text)


def has_namespace_separator(key: str) -> bool:
    """
    Проверяет, что ключ адресует namespace ('auth.failed', но не 'Hello World.').

    Условия: есть точка, первый сегмент - [A-Za-z0-9_-]+, второй сегмент
    не пустой после trim.
    """
    if "." not in key:
        return False

    parts = key.split(".")
    first = parts[0].strip()
    if not first or not _NAMESPACE_SEGMENT.match(first):
        return False

    return bool(parts[1].strip())


def classify_key(key: str) -> str:
    """Возвращает 'namespaced' или 'flat'."""
    return NAMESPACED if has_namespace_separator(key) else FLAT


def split_namespaced_key(key: str) -> Tuple[str, str]:
    """'validation.email.required' -> ('validation', 'email.required')."""
    namespace, _, path = key.partition(".")
    return namespace, path


def _shadowed_by_leaf(data: Dict[str, object], path: str) -> bool:
    """Есть ли на пути 'a.b.c' строковый лист ('a' или 'a.b')."""
    segments = path.split(".")
    for i in range(1, len(segments)):
        value = dotted.get_path(data, ".".join(segments[:i]))
        if value is not None and not isinstance(value, dict):
            return True
    return False


@dataclass
class ScanResult:
    """Результат сканирования: уникальные ключи в порядке обнаружения."""
    flat: List[str] = field(default_factory=list)
    namespaced: List[str] = field(default_factory=list)
    files_scanned: int = 0
    by_file: Dict[str, int] = field(default_factory=dict)

    def add(self, key: str) -> None:
        bucket = self.namespaced if has_namespace_separator(key) else self.flat
        if key not in bucket:
            bucket.append(key)

    @property
    def total(self) -> int:
        return len(self.flat) + len(self.namespaced)


@dataclass
class SyncReport:
    """Итог синхронизации ключей с каталогом."""
    scan: ScanResult
    added: Dict[str, int] = field(default_factory=dict)
    stats: Dict[str, Dict[str, int]] = field(default_factory=dict)


class KeyScanner:
    """
    Сканер проекта - обходит файлы и собирает ключи перевода.

    Args:
        include: Директории (или файлы) для сканирования
        exclude: Исключаемые пути (префикс пути или имя компонента)
        extensions: Расширения без точки ('php', 'blade.php', 'ts', ...)
        functions: Имена функций перевода
    """

    def __init__(self, include: Iterable[Path], exclude: Iterable[Path] = (),
                 extensions: Iterable[str] = (),
                 functions: Sequence[str] = DEFAULT_FUNCTIONS):
        self.include = [Path(p) for p in include]
        self.exclude = [Path(p) for p in exclude]
        self.extensions = [ext.lstrip(".") for ext in extensions]
        self._patterns = _call_patterns(functions)

    # ── Файлы ──

    def find_files(self) -> List[Path]:
        """Материализует список файлов (до начала сканирования)."""
        files = set()
        for root in self.include:
            if root.is_file():
                candidates: Iterable[Path] = [root]
            elif root.is_dir():
                candidates = root.rglob("*")
            else:
                logger.debug("Путь для сканирования не найден: %s", root)
                continue

            for path in candidates:
                if path.is_file() and self._matches_extension(path) \
                        and not self._is_excluded(path):
                    files.add(path)
        return sorted(files)

    def _matches_extension(self, path: Path) -> bool:
        if not self.extensions:
            return True
        return any(path.name.endswith(f".{ext}") for ext in self.extensions)

    def _is_excluded(self, path: Path) -> bool:
        resolved = path.resolve()
        for exc in self.exclude:
            if exc.is_absolute() or len(exc.parts) > 1:
                try:
                    resolved.relative_to(exc.resolve())
                    return True
                except ValueError:
                    continue
            elif exc.name in path.parts:
                return True
        return False

    # ── Извлечение ──

    def extract_keys(self, content: str) -> List[str]:
        """Все ключи из текста (без дублей, в порядке появления)."""
        keys: List[str] = []
        for pattern in self._patterns:
            for match in pattern.finditer(content):
                key = unescape_literal(match.group(1))
                if key and key not in keys:
                    keys.append(key)
        return keys

    def scan(self, progress: Optional[ProgressCallback] = None) -> ScanResult:
        """
        Сканирует файлы и классифицирует ключи.

        Args:
            progress: callback(index, total, path) после каждого файла
        """
        files = self.find_files()
        total = len(files)
        result = ScanResult()

        for index, path in enumerate(files, 1):
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("[SKIP] Ошибка чтения %s: %s", path, exc)
                content = ""

            keys = self.extract_keys(content)
            for key in keys:
                result.add(key)
            if keys:
                result.by_file[str(path)] = len(keys)

            result.files_scanned += 1
            if progress:
                progress(index, total, path)

        logger.info("Просканировано файлов: %d, ключей: %d (плоских %d, namespace %d)",
                    total, result.total, len(result.flat), len(result.namespaced))
        return result

    # ── Синхронизация ──

    def sync(self, catalog: TranslationCatalog, locales: Sequence[str],
             progress: Optional[ProgressCallback] = None,
             propagate: bool = True) -> SyncReport:
        """
        Сканирует проект и добавляет недостающие ключи во все локали.

        Существующие значения не меняются. Плейсхолдер плоского ключа - сам
        ключ, namespace-ключа - путь внутри namespace.

        Args:
            propagate: Ключи, уже присутствующие в плоском словаре любой
                из локалей, добавляются в остальные
        """
        result = self.scan(progress)
        report = SyncReport(scan=result)

        flat_keys = list(result.flat)
        if propagate:
            for locale in locales:
                for key in catalog.get_flat(locale):
                    if key not in flat_keys:
                        flat_keys.append(key)

        namespaced: Dict[str, List[str]] = {}
        for key in result.namespaced:
            namespace, path = split_namespaced_key(key)
            namespaced.setdefault(namespace, []).append(path)

        for locale in locales:
            added = 0

            existing = catalog.get_flat(locale)
            missing_flat = {key: key for key in flat_keys if key not in existing}
            catalog.bulk_set_flat(missing_flat, locale)
            added += len(missing_flat)

            catalog.locale_path(locale).mkdir(parents=True, exist_ok=True)
            for namespace, paths in namespaced.items():
                current = catalog.get_namespace(locale, namespace)
                missing: Dict[str, object] = {}
                for path in paths:
                    if dotted.has_path(current, path) or dotted.has_path(missing, path):
                        continue
                    if _shadowed_by_leaf(current, path):
                        logger.warning("[%s] Ключ %s.%s конфликтует с существующим значением",
                                       locale, namespace, path)
                        continue
                    dotted.set_path(missing, path, path)
                if missing or not catalog.namespace_path(locale, namespace).exists():
                    catalog.bulk_set_namespaced(namespace, missing, locale)
                added += len(dotted.flatten(missing))

            report.added[locale] = added
            report.stats[locale] = catalog.stats(locale)
            logger.info("[%s] Добавлено ключей: %d", locale, added)

        catalog.cache.forget_available()
        return report
