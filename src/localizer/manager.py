#!/usr/bin/env python3
"""
Manager - CLI localizer.

Команды:
  sync       Сканирует проект и добавляет найденные ключи в файлы локалей
  generate   Генерирует TypeScript-модули переводов для фронтенда
  translate  Ставит в очередь машинный перевод source -> target
  work       Выполняет задачи из очереди перевода
  install    Создаёт конфиг, локаль по умолчанию и директорию для TS

Использование:
  localizer sync --all
  localizer sync --locales=en,es
  localizer generate --all
  localizer translate --source=en --target=es
  localizer work
  python -m localizer.manager install
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .catalog import TranslationCatalog
from .config import DEFAULT_CONFIG_FILE, LocalizerConfig, load_config, write_config
from .errors import (
    InsufficientLocales,
    LocalizerError,
    NoLocalesSelected,
    UnknownLocale,
)
from .exporter import TEMPLATES_DIR, TypeScriptExporter
from .jobs import TranslateLocaleJob
from .job_queue import FileJobQueue
from .scanner import KeyScanner
from .translator import LLMTranslationProvider, ensure_provider_available

logger = logging.getLogger(__name__)

GITIGNORE_HEADER = "# Сгенерированные переводы (localizer generate)"


def _header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def _catalog(config: LocalizerConfig) -> TranslationCatalog:
    return TranslationCatalog(config.path, default_locale=config.default)


def parse_locales_option(values: Optional[Sequence[str]]) -> List[str]:
    """['en,es', 'fr'] -> ['en', 'es', 'fr'] (без дублей, порядок сохранён)."""
    locales: List[str] = []
    for value in values or []:
        for locale in value.split(","):
            locale = locale.strip()
            if locale and locale not in locales:
                locales.append(locale)
    return locales


def resolve_locales(args, catalog: TranslationCatalog,
                    prompt: Callable[[str], str] = input,
                    interactive: Optional[bool] = None) -> List[str]:
    """
    Локали из --all / --locales или интерактивного выбора.

    Raises:
        NoLocalesSelected: ни одной локали
    """
    if getattr(args, "all", False):
        locales = list(catalog.available_locales())
    elif getattr(args, "locales", None):
        locales = parse_locales_option(args.locales)
    else:
        available = catalog.available_locales()
        if interactive is None:
            interactive = bool(available) and sys.stdin.isatty()
        locales = []
        if interactive and available:
            answer = prompt(
                f"  Какие локали обработать? [{', '.join(available)}] (Enter - все): "
            )
            locales = parse_locales_option([answer]) if answer.strip() else list(available)

    if not locales:
        raise NoLocalesSelected()
    return locales


# ══════════════════════════════════════════════════
#  Команды
# ══════════════════════════════════════════════════

def cmd_sync(args, config: LocalizerConfig) -> int:
    """Команда: сканирование и синхронизация ключей."""
    _header("🔄 Localizer - Sync")
    catalog = _catalog(config)
    locales = resolve_locales(args, catalog)
    print(f"\n  📦 Локали ({len(locales)}): {', '.join(locales)}")

    scanner = KeyScanner(config.scan.include, config.scan.exclude, config.scan.extensions)

    def progress(index: int, total: int, path: Path) -> None:
        if index == 1:
            print(f"\n  🔎 Сканирование {total} файлов...")
        print(f"\r    [{index}/{total}] {path.name[:40]:<40}", end="", flush=True)
        if index == total:
            print()

    start = time.time()
    report = scanner.sync(catalog, locales, progress=progress)
    elapsed = time.time() - start

    print(f"\n{'='*60}")
    print(f"  ✓ Синхронизация завершена ({elapsed:.1f}с)")
    print(f"    Файлов:          {report.scan.files_scanned}")
    print(f"    Плоских ключей:  {len(report.scan.flat)}")
    print(f"    Namespace-ключей: {len(report.scan.namespaced)}")
    print(f"\n  По локалям:")
    for locale in locales:
        stats = report.stats[locale]
        print(f"    {locale:<10} {stats['total']} ключей "
              f"({stats['flat']} JSON, {stats['namespaced']} namespace), "
              f"новых: {report.added[locale]}")
    print(f"{'='*60}\n")
    return 0


def cmd_generate(args, config: LocalizerConfig) -> int:
    """Команда: генерация TypeScript-файлов."""
    _header("📝 Localizer - Generate")
    catalog = _catalog(config)
    locales = resolve_locales(args, catalog)
    print(f"\n  📦 Локали ({len(locales)}): {', '.join(locales)}\n")

    exporter = TypeScriptExporter(catalog, config.typescript_output_path)

    def progress(locale: str, path: Path, count: int) -> None:
        print(f"    ✓ {path} ({count} ключей)")

    report = exporter.generate(locales, progress=progress)
    print(f"    ✓ {report.index_path} (реестр)")

    print(f"\n{'='*60}")
    print(f"  ✓ Сгенерировано файлов: {len(report.files)}")
    print(f"    Директория: {report.output_path}")
    print(f"{'='*60}\n")
    return 0


def validate_translation_locales(config: LocalizerConfig, source: str, target: str) -> None:
    """
    Проверяет локали перевода по конфигурации.

    Raises:
        InsufficientLocales: настроено меньше двух локалей
        UnknownLocale: source или target не настроены
    """
    if len(config.available) < 2:
        raise InsufficientLocales(len(config.available))
    if source not in config.available:
        raise UnknownLocale(source, "Исходная")
    if target not in config.available:
        raise UnknownLocale(target, "Целевая")


def cmd_translate(args, config: LocalizerConfig) -> int:
    """Команда: постановка перевода в очередь."""
    _header("🌐 Localizer - Translate")
    source = args.source_locale or config.default
    target = args.target_locale
    if not target:
        others = [code for code in config.available if code != source]
        if not others:
            raise InsufficientLocales(len(config.available))
        target = others[0]

    validate_translation_locales(config, source, target)
    ensure_provider_available()

    job = TranslateLocaleJob(
        source_locale=source,
        target_locale=target,
        tries=config.translation.tries,
        sleep=config.translation.sleep,
    )
    queue = FileJobQueue(config.queue_path)
    job_path = queue.push(job)

    print(f"\n  ✓ Задача перевода {source} -> {target} поставлена в очередь")
    print(f"    {job_path}")
    print(f"\n  ⚡ Перевод выполняется в фоне. Запустите воркер:")
    print(f"     localizer work\n")
    return 0


def cmd_work(args, config: LocalizerConfig) -> int:
    """Команда: выполнение очереди перевода."""
    _header("⚙️  Localizer - Work")
    ensure_provider_available()

    queue = FileJobQueue(config.queue_path)
    if args.retry_failed:
        print(f"  Возвращено в очередь: {queue.retry_failed()}")

    catalog = _catalog(config)
    provider = LLMTranslationProvider(
        model=config.translation.model,
        temperature=config.translation.temperature,
    )

    def handler(job: TranslateLocaleJob) -> None:
        print(f"  ▶ {job.source_locale} -> {job.target_locale}")
        stats = job.handle(catalog, provider)
        print(f"    JSON: {stats['flat']}, namespace: {stats['namespaced']}, "
              f"пропущено: {stats['skipped']}")

    stats = queue.work(handler, once=args.once)
    print(f"\n  Выполнено: {stats['processed']}, ошибок: {stats['failed']}\n")
    return 1 if stats["failed"] else 0


def _relative(path: Path, root: Path) -> str:
    try:
        return Path(path).resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return Path(path).as_posix()


def update_gitignore(gitignore: Path, entry: str) -> bool:
    """Добавляет entry в .gitignore (если ещё нет). True - файл изменён."""
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    if entry in content.splitlines():
        return False
    prefix = "" if not content or content.endswith("\n") else "\n"
    with open(gitignore, "a", encoding="utf-8") as f:
        f.write(f"{prefix}\n{GITIGNORE_HEADER}\n{entry}\n")
    return True


def cmd_install(args, config: LocalizerConfig) -> int:
    """Команда: первоначальная настройка."""
    _header("📦 Localizer - Install")
    config_path = Path(args.config)

    if config_path.exists() and not args.force:
        print(f"  ⚠️  Конфиг {config_path} уже существует (--force для перезаписи)")
    else:
        write_config(config, config_path)
        print(f"  ✓ Конфиг: {config_path}")

    catalog = _catalog(config)
    if not catalog.exists(config.default):
        catalog.create(config.default)
    print(f"  ✓ Локаль по умолчанию: {config.default}")

    output = Path(config.typescript_output_path)
    output.mkdir(parents=True, exist_ok=True)
    env = Environment(loader=FileSystemLoader(str(TEMPLATES_DIR)), keep_trailing_newline=True)
    readme = env.get_template("README.md.j2").render(
        lang_path=_relative(config.path, config.root)
    )
    (output / "README.md").write_text(readme, encoding="utf-8")
    print(f"  ✓ Директория TypeScript: {output}")

    entry = _relative(output, config.root)
    if update_gitignore(config.root / ".gitignore", entry):
        print(f"  ✓ .gitignore: добавлен {entry}")

    if not args.no_generate:
        args.all = True
        return cmd_generate(args, config)
    return 0


# ══════════════════════════════════════════════════
#  CLI
# ══════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    """Строит парсер аргументов."""
    parser = argparse.ArgumentParser(
        prog="localizer",
        description="Управление переводами веб-приложения",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры:
  # Найти ключи в коде и добавить во все локали
  localizer sync --all

  # TypeScript для фронтенда
  localizer generate --locales=en,es

  # Машинный перевод в фоне
  localizer translate --source=en --target=es
  localizer work
        """
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help="Путь к YAML-конфигу")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Подробный лог")

    subparsers = parser.add_subparsers(dest="command", help="Команда")

    # === sync ===
    p_sync = subparsers.add_parser("sync", help="Сканировать проект и синхронизировать ключи")
    p_sync.add_argument("--locales", action="append", default=[],
                        help="Локали (через запятую, можно несколько раз)")
    p_sync.add_argument("--all", action="store_true", help="Все доступные локали")

    # === generate ===
    p_gen = subparsers.add_parser("generate", help="Сгенерировать TypeScript-файлы")
    p_gen.add_argument("--locales", action="append", default=[],
                       help="Локали (через запятую, можно несколько раз)")
    p_gen.add_argument("--all", action="store_true", help="Все доступные локали")

    # === translate ===
    p_trans = subparsers.add_parser("translate", help="Поставить машинный перевод в очередь")
    p_trans.add_argument("--source-locale", "--source", default="",
                         help="Исходный язык (по умолчанию default из конфига)")
    p_trans.add_argument("--target-locale", "--target", default="",
                         help="Целевой язык")

    # === work ===
    p_work = subparsers.add_parser("work", help="Выполнить задачи из очереди перевода")
    p_work.add_argument("--once", action="store_true", help="Только одну задачу")
    p_work.add_argument("--retry-failed", action="store_true",
                        help="Вернуть упавшие задачи в очередь")

    # === install ===
    p_inst = subparsers.add_parser("install", help="Первоначальная настройка")
    p_inst.add_argument("--force", action="store_true", help="Перезаписать конфиг")
    p_inst.add_argument("--no-generate", action="store_true",
                        help="Не генерировать TypeScript после установки")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Точка входа CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "sync": cmd_sync,
        "generate": cmd_generate,
        "translate": cmd_translate,
        "work": cmd_work,
        "install": cmd_install,
    }

    logger.debug("Команда %s, конфиг %s", args.command, args.config)
    try:
        config = load_config(Path(args.config))
        return commands[args.command](args, config)
    except LocalizerError as exc:
        print(f"\n  ❌ {exc.user_message}\n", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
