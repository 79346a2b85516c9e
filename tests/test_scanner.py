"""
Тесты сканера ключей перевода.
"""

from pathlib import Path

import pytest

from localizer.scanner import (
    FLAT,
    NAMESPACED,
    KeyScanner,
    classify_key,
    has_namespace_separator,
    split_namespaced_key,
    unescape_literal,
)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def snapshot(root: Path) -> dict:
    return {
        str(p.relative_to(root)): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*")) if p.is_file()
    }


class TestClassification:

    @pytest.mark.parametrize("key", [
        "auth.failed",
        "validation.email.required",
        "my-package.title",
        "v2.label",
    ])
    def test_namespaced(self, key):
        assert classify_key(key) == NAMESPACED

    @pytest.mark.parametrize("key", [
        "Hello World",
        "End with dot.",
        ".leading",
        "auth. ",
        "Don't stop.",
    ])
    def test_flat(self, key):
        assert classify_key(key) == FLAT
        assert not has_namespace_separator(key)

    @pytest.mark.parametrize("key", ["Mr.Smith", "Hello. World."])
    def test_known_false_positive(self, key):
        assert classify_key(key) == NAMESPACED

    def test_split(self):
        assert split_namespaced_key("validation.email.required") == (
            "validation", "email.required"
        )


class TestExtraction:

    @pytest.fixture
    def scanner(self):
        return KeyScanner(include=[])

    def test_single_and_double_quotes(self, scanner):
        content = """
            <?php echo __('Welcome'); ?>
            {{ trans("auth.failed") }}
            @lang('messages.title')
        """
        assert scanner.extract_keys(content) == ["Welcome", "messages.title", "auth.failed"]

    def test_escaped_quotes(self, scanner):
        content = r"""__('It\'s here') . __("Say \"hi\"")"""
        assert scanner.extract_keys(content) == ["It's here", 'Say "hi"']

    def test_whitespace_and_multiline(self, scanner):
        content = "trans (\n    'Multi\nline'\n)"
        assert scanner.extract_keys(content) == ["Multi\nline"]

    def test_ignores_other_functions(self, scanner):
        content = "my__('no') translate('no') $__('no') obj.trans('yes')"
        assert scanner.extract_keys(content) == ["yes"]

    def test_deduplicates_in_order(self, scanner):
        content = "__('b') __('a') __('b')"
        assert scanner.extract_keys(content) == ["b", "a"]

    def test_custom_functions(self):
        scanner = KeyScanner(include=[], functions=("_t",))
        assert scanner.extract_keys("_t('x') __('y')") == ["x"]


class TestUnescape:

    @pytest.mark.parametrize("raw, expected", [
        (r"a\nb", "a\nb"),
        (r"tab\there", "tab\there"),
        (r"back\\slash", "back\\slash"),
        (r"\x41\x42", "AB"),
        (r"\101", "A"),
        (r"\q", "q"),
        ("plain", "plain"),
    ])
    def test_unescape(self, raw, expected):
        assert unescape_literal(raw) == expected


class TestFiles:

    def test_find_files_filters_extensions_and_excludes(self, project):
        write(project / "app" / "Http" / "Controller.php", "")
        write(project / "resources" / "views" / "home.blade.php", "")
        write(project / "resources" / "views" / "style.css", "")
        write(project / "app" / "node_modules" / "lib.ts", "")
        write(project / "app" / "generated" / "skip.ts", "")

        scanner = KeyScanner(
            include=[project / "app", project / "resources", project / "missing"],
            exclude=[Path("node_modules"), project / "app" / "generated"],
            extensions=["php", "blade.php", "ts"],
        )

        files = [p.relative_to(project).as_posix() for p in scanner.find_files()]
        assert files == [
            "app/Http/Controller.php",
            "resources/views/home.blade.php",
        ]

    def test_scan_reports_progress(self, project):
        write(project / "app" / "a.php", "__('First') __('auth.failed')")
        write(project / "app" / "b.php", "__('First') trans('Second')")
        calls = []

        scanner = KeyScanner(include=[project / "app"], extensions=["php"])
        result = scanner.scan(progress=lambda i, total, path: calls.append((i, total, path.name)))

        assert calls == [(1, 2, "a.php"), (2, 2, "b.php")]
        assert result.flat == ["First", "Second"]
        assert result.namespaced == ["auth.failed"]
        assert result.files_scanned == 2
        assert result.total == 3

    def test_unreadable_file_is_skipped(self, project):
        (project / "app" / "binary.php").write_bytes(b"\xff\xfe__('x')")
        write(project / "app" / "ok.php", "__('ok')")

        result = KeyScanner(include=[project / "app"], extensions=["php"]).scan()

        assert result.flat == ["ok"]
        assert result.files_scanned == 2


class TestSync:

    @pytest.fixture
    def scanner(self, project):
        return KeyScanner(include=[project / "app"], extensions=["php"])

    def test_scenario_two_locales(self, project, scanner, catalog):
        write(project / "app" / "page.php", "__('welcome'); trans('validation.required');")

        report = scanner.sync(catalog, ["en", "es"])

        for locale in ("en", "es"):
            assert catalog.get_flat(locale) == {"welcome": "welcome"}
            assert catalog.get_namespace(locale, "validation") == {"required": "required"}
            assert report.added[locale] == 2
            assert report.stats[locale]["total"] == 2

    def test_nested_placeholder_is_path_remainder(self, project, scanner, catalog):
        write(project / "app" / "page.php", "__('validation.email.required')")

        scanner.sync(catalog, ["en"])

        assert catalog.get_namespace("en", "validation") == {
            "email": {"required": "email.required"}
        }

    def test_existing_values_are_preserved(self, project, scanner, catalog):
        catalog.set_flat("welcome", "Bienvenido", "es")
        catalog.set_namespaced("validation.required", "Obligatorio", "es")
        write(project / "app" / "page.php", "__('welcome') __('validation.required') __('new')")

        report = scanner.sync(catalog, ["es"])

        assert catalog.get_flat("es") == {"welcome": "Bienvenido", "new": "new"}
        assert catalog.get_namespace("es", "validation") == {"required": "Obligatorio"}
        assert report.added["es"] == 1

    def test_idempotent(self, project, scanner, catalog, lang_path):
        write(project / "app" / "page.php", "__('welcome') __('auth.failed') __('a.b.c')")

        scanner.sync(catalog, ["en", "es"])
        first = snapshot(lang_path)
        report = scanner.sync(catalog, ["en", "es"])

        assert snapshot(lang_path) == first
        assert report.added == {"en": 0, "es": 0}

    def test_flat_keys_propagate_across_locales(self, project, scanner, catalog):
        catalog.set_flat("Only in English", "Only in English", "en")
        write(project / "app" / "page.php", "")

        scanner.sync(catalog, ["en", "es"])

        assert catalog.get_flat("es") == {"Only in English": "Only in English"}

    def test_propagation_can_be_disabled(self, project, scanner, catalog):
        catalog.set_flat("Only in English", None, "en")

        scanner.sync(catalog, ["en", "es"], propagate=False)

        assert catalog.get_flat("es") == {}

    def test_leaf_conflict_is_skipped(self, project, scanner, catalog):
        catalog.set_namespaced("auth.failed", "Failed", "en")
        write(project / "app" / "page.php", "__('auth.failed.title')")

        report = scanner.sync(catalog, ["en"])

        assert catalog.get_namespace("en", "auth") == {"failed": "Failed"}
        assert report.added["en"] == 0
