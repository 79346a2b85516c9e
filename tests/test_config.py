"""
Тесты загрузки и записи конфигурации.
"""

from pathlib import Path

import pytest
import yaml

from localizer.config import (
    DEFAULT_AVAILABLE,
    LocalizerConfig,
    load_config,
    write_config,
)
from localizer.errors import ConfigError


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "localizer.yaml", env={})

        assert config.default == "en"
        assert config.fallback == "en"
        assert config.available == DEFAULT_AVAILABLE
        assert config.path == tmp_path / "lang"
        assert config.typescript_output_path == tmp_path / "resources" / "js" / "lang"
        assert tmp_path / "vendor" in config.scan.exclude

    def test_values_and_relative_paths(self, tmp_path):
        path = tmp_path / "localizer.yaml"
        path.write_text(yaml.safe_dump({
            "default": "es",
            "available": {"es": {"label": "Spanish"}, "he": {"dir": "rtl"}},
            "path": "resources/lang",
            "typescript_output_path": "/abs/out",
            "scan": {"include": ["src"], "extensions": [".py", "ts"]},
            "translation": {"model": "openai/gpt-4o-mini", "tries": 3, "sleep": 0},
        }), encoding="utf-8")

        config = load_config(path, env={})

        assert config.default == "es"
        assert list(config.available) == ["es", "he"]
        assert config.path == tmp_path / "resources" / "lang"
        assert config.typescript_output_path == Path("/abs/out")
        assert config.scan.include == [tmp_path / "src"]
        assert config.scan.extensions == ["py", "ts"]
        assert config.translation.model == "openai/gpt-4o-mini"
        assert config.translation.tries == 3
        assert config.translation.sleep == 0.0

    def test_env_overrides(self, tmp_path):
        config = load_config(tmp_path / "localizer.yaml",
                             env={"APP_LOCALE": "fr", "APP_FALLBACK_LOCALE": "de"})

        assert config.default == "fr"
        assert config.fallback == "de"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "localizer.yaml"
        path.write_text("default: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path, env={})

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "localizer.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(path, env={})


class TestLocalizerConfig:

    def test_locale_dir(self):
        config = LocalizerConfig()
        assert config.locale_dir("ar") == "rtl"
        assert config.locale_dir("en") == "ltr"
        assert config.locale_dir("xx") == "ltr"

    def test_is_available(self):
        config = LocalizerConfig()
        assert config.is_available("es")
        assert not config.is_available("xx")
        assert not config.is_available(None)
        assert not config.is_available("")

    def test_write_and_load_back(self, config, project):
        path = project / "localizer.yaml"
        write_config(config, path)

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["path"] == "lang"
        assert data["scan"]["include"] == ["app", "resources"]

        loaded = load_config(path, env={})
        assert loaded.available == config.available
        assert loaded.path == config.path
        assert loaded.scan.include == config.scan.include
