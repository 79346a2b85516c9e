"""
localizer - управление переводами веб-приложения.

Модули:
- catalog: Хранилище переводов (JSON-словари и YAML-namespace для каждой локали)
- scanner: Поиск ключей __()/trans()/lang() в коде и синхронизация с каталогом
- exporter: Генерация TypeScript-модулей для фронтенда
- jobs / job_queue: Фоновый машинный перевод локали через очередь
- translator: Провайдер перевода (LLM через litellm)
- middleware: Определение локали запроса (Starlette / FastAPI)
- manager: CLI (sync, generate, translate, work, install)
"""

from .catalog import TranslationCatalog
from .config import LocalizerConfig, load_config
from .context import get_locale, set_locale
from .errors import (
    ConfigError,
    InsufficientLocales,
    InvalidKeyFormat,
    LocalizerError,
    MissingProvider,
    NoLocalesSelected,
    UnknownLocale,
)
from .exporter import TypeScriptExporter
from .jobs import TranslateLocaleJob
from .scanner import KeyScanner

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "InsufficientLocales",
    "InvalidKeyFormat",
    "KeyScanner",
    "LocalizerConfig",
    "LocalizerError",
    "MissingProvider",
    "NoLocalesSelected",
    "TranslateLocaleJob",
    "TranslationCatalog",
    "TypeScriptExporter",
    "UnknownLocale",
    "get_locale",
    "load_config",
    "set_locale",
]
