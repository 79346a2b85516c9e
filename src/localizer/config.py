"""
Config - конфигурация localizer.

Читается из YAML (по умолчанию localizer.yaml в корне проекта).
Отсутствующие ключи берутся из значений по умолчанию, относительные пути
разрешаются от директории конфига. Переменные окружения:
    APP_LOCALE          -> default
    APP_FALLBACK_LOCALE -> fallback
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "localizer.yaml"

DEFAULT_AVAILABLE: Dict[str, Dict[str, str]] = {
    "en": {"label": "English", "flag": "🇬🇧", "dir": "ltr"},
    "ar": {"label": "Arabic", "flag": "🇸🇦", "dir": "rtl"},
    "bn": {"label": "Bengali", "flag": "🇧🇩", "dir": "ltr"},
    "es": {"label": "Spanish", "flag": "🇪🇸", "dir": "ltr"},
    "fr": {"label": "French", "flag": "🇫🇷", "dir": "ltr"},
    "de": {"label": "German", "flag": "🇩🇪", "dir": "ltr"},
}

DEFAULT_EXTENSIONS = ["php", "blade.php", "py", "html", "jinja", "js", "jsx", "ts", "tsx", "vue"]


@dataclass
class ScanConfig:
    """Что сканировать в поисках ключей перевода."""
    include: List[Path] = field(default_factory=list)
    exclude: List[Path] = field(default_factory=list)
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


@dataclass
class TranslationSettings:
    """Параметры фонового машинного перевода."""
    model: str = "gemini/gemini-2.0-flash"
    tries: int = 10           # Переводов до паузы
    sleep: float = 1.0        # Пауза (секунды)
    temperature: float = 0.3


@dataclass
class LocalizerConfig:
    """Конфигурация localizer."""
    default: str = "en"
    fallback: str = "en"
    available: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_AVAILABLE)
    )
    path: Path = Path("lang")
    typescript_output_path: Path = Path("resources/js/lang")
    queue_path: Path = Path(".localizer/queue")
    scan: ScanConfig = field(default_factory=ScanConfig)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    root: Path = Path(".")

    def locale_dir(self, locale: str) -> str:
        """Направление текста (ltr/rtl), по умолчанию ltr."""
        return (self.available.get(locale) or {}).get("dir", "ltr")

    def is_available(self, locale: Optional[str]) -> bool:
        return bool(locale) and locale in self.available

    def to_dict(self) -> Dict[str, Any]:
        """Сериализует конфиг для записи в YAML (пути относительно root)."""
        def rel(p: Path) -> str:
            try:
                return str(Path(p).relative_to(self.root))
            except ValueError:
                return str(p)

        return {
            "default": self.default,
            "fallback": self.fallback,
            "available": self.available,
            "path": rel(self.path),
            "typescript_output_path": rel(self.typescript_output_path),
            "queue_path": rel(self.queue_path),
            "scan": {
                "include": [rel(p) for p in self.scan.include],
                "exclude": [rel(p) for p in self.scan.exclude],
                "extensions": list(self.scan.extensions),
            },
            "translation": {
                "model": self.translation.model,
                "tries": self.translation.tries,
                "sleep": self.translation.sleep,
                "temperature": self.translation.temperature,
            },
        }


def default_config(root: Path) -> LocalizerConfig:
    """Конфиг по умолчанию для проекта в root."""
    root = Path(root)
    lang = root / "lang"
    return LocalizerConfig(
        path=lang,
        typescript_output_path=root / "resources" / "js" / "lang",
        queue_path=root / ".localizer" / "queue",
        scan=ScanConfig(
            include=[root / "app", root / "resources", root / "routes", root / "templates"],
            exclude=[
                root / "bootstrap", lang, root / "public", root / "storage",
                root / "vendor", root / "node_modules", root / ".venv",
            ],
        ),
        root=root,
    )


def load_config(config_path: Optional[Path] = None,
                env: Optional[Dict[str, str]] = None) -> LocalizerConfig:
    """
    Загружает конфигурацию из YAML.

    Args:
        config_path: Путь к YAML-файлу. Если файла нет - значения по умолчанию.
        env: Переменные окружения (по умолчанию os.environ)

    Raises:
        ConfigError: файл существует, но не парсится
    """
    config_path = Path(config_path or DEFAULT_CONFIG_FILE)
    env = os.environ if env is None else env
    root = config_path.resolve().parent
    config = default_config(root)

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Ошибка разбора конфига {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Конфиг {config_path} должен быть словарём")
        logger.info("Конфигурация загружена из %s", config_path)
    else:
        logger.debug("Конфиг %s не найден, используются значения по умолчанию", config_path)

    _apply(config, data, root)

    if env.get("APP_LOCALE"):
        config.default = env["APP_LOCALE"]
    if env.get("APP_FALLBACK_LOCALE"):
        config.fallback = env["APP_FALLBACK_LOCALE"]

    return config


def _apply(config: LocalizerConfig, data: Dict[str, Any], root: Path) -> None:
    """Накладывает значения из YAML на конфиг по умолчанию."""
    def resolve(value: str) -> Path:
        p = Path(value).expanduser()
        return p if p.is_absolute() else root / p

    if "default" in data:
        config.default = str(data["default"])
    if "fallback" in data:
        config.fallback = str(data["fallback"])
    if isinstance(data.get("available"), dict):
        config.available = {
            str(code): dict(meta or {}) for code, meta in data["available"].items()
        }
    for name in ("path", "typescript_output_path", "queue_path"):
        if data.get(name):
            setattr(config, name, resolve(data[name]))

    scan = data.get("scan") or {}
    if "include" in scan:
        config.scan.include = [resolve(p) for p in scan["include"] or []]
    if "exclude" in scan:
        config.scan.exclude = [resolve(p) for p in scan["exclude"] or []]
    if "extensions" in scan:
        config.scan.extensions = [str(e).lstrip(".") for e in scan["extensions"] or []]

    translation = data.get("translation") or {}
    if "model" in translation:
        config.translation.model = str(translation["model"])
    if "tries" in translation:
        config.translation.tries = int(translation["tries"])
    if "sleep" in translation:
        config.translation.sleep = float(translation["sleep"])
    if "temperature" in translation:
        config.translation.temperature = float(translation["temperature"])


def write_config(config: LocalizerConfig, config_path: Path) -> None:
    """Записывает конфиг в YAML."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, allow_unicode=True, sort_keys=False)
    logger.info("Конфиг записан: %s", config_path)
