"""
Общие фикстуры тестов localizer.

Все файлы создаются во временной директории pytest (tmp_path),
провайдер перевода подменяется фейковым - сеть не используется.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from localizer.catalog import TranslationCatalog
from localizer.config import LocalizerConfig, ScanConfig, default_config


class FakeProvider:
    """Провайдер перевода для тестов: '[target] text', запоминает вызовы."""

    def __init__(self, fail_on: Optional[str] = None):
        self.calls: List[Tuple[str, Optional[str], str]] = []
        self.fail_on = fail_on

    def translate(self, text: str, source: Optional[str], target: str) -> str:
        self.calls.append((text, source, target))
        if self.fail_on is not None and text == self.fail_on:
            raise RuntimeError(f"provider failed on {text!r}")
        return f"[{target}] {text}"


@pytest.fixture
def lang_path(tmp_path: Path) -> Path:
    path = tmp_path / "lang"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def catalog(lang_path: Path) -> TranslationCatalog:
    return TranslationCatalog(lang_path, default_locale="en")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Минимальный проект: app/ и resources/ с вызовами функций перевода."""
    (tmp_path / "app").mkdir()
    (tmp_path / "resources" / "views").mkdir(parents=True)
    (tmp_path / "lang").mkdir(exist_ok=True)
    return tmp_path


@pytest.fixture
def config(project: Path) -> LocalizerConfig:
    """Конфиг проекта с локалями en и es."""
    cfg = default_config(project)
    cfg.available = {
        "en": {"label": "English", "flag": "🇬🇧", "dir": "ltr"},
        "es": {"label": "Spanish", "flag": "🇪🇸", "dir": "ltr"},
        "ar": {"label": "Arabic", "flag": "🇸🇦", "dir": "rtl"},
    }
    cfg.scan = ScanConfig(
        include=[project / "app", project / "resources"],
        exclude=[project / "lang"],
        extensions=["php", "blade.php", "py", "ts"],
    )
    return cfg
