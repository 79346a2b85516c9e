"""
Тесты задачи машинного перевода (TranslateLocaleJob).
"""

from unittest.mock import MagicMock

import pytest

from localizer.jobs import TranslateLocaleJob, is_translated


@pytest.fixture
def source(catalog):
    catalog.bulk_set_flat({"Hello": "Hello", "Bye": "Bye"}, "en")
    catalog.bulk_set_namespaced("messages", {
        "welcome": "Welcome",
        "nested": {"title": "Title", "empty": ""},
    }, "en")
    return catalog


class TestTranslateLocaleJob:

    def test_translates_flat_and_namespaces(self, source, fake_provider):
        job = TranslateLocaleJob("en", "es")

        stats = job.handle(source, fake_provider, sleeper=lambda s: None)

        assert source.get_flat("es") == {"Hello": "[es] Hello", "Bye": "[es] Bye"}
        assert source.get_namespace("es", "messages") == {
            "welcome": "[es] Welcome",
            "nested": {"title": "[es] Title", "empty": ""},
        }
        assert stats == {"flat": 2, "namespaced": 3, "skipped": 0}

    def test_skips_existing_values(self, source, fake_provider):
        source.set_flat("Hello", "Hola", "es")
        source.set_namespaced("messages.welcome", "Bienvenido", "es")

        stats = TranslateLocaleJob("en", "es").handle(source, fake_provider,
                                                      sleeper=lambda s: None)

        translated = [text for text, _, _ in fake_provider.calls]
        assert "Hello" not in translated
        assert "Welcome" not in translated
        assert source.get_flat("es")["Hello"] == "Hola"
        assert source.get_namespace("es", "messages")["welcome"] == "Bienvenido"
        assert stats["skipped"] == 2

    def test_empty_target_value_is_translated(self, source, fake_provider):
        source.set_flat("Hello", "", "es")

        TranslateLocaleJob("en", "es").handle(source, fake_provider, sleeper=lambda s: None)

        assert source.get_flat("es")["Hello"] == "[es] Hello"

    def test_same_locale_uses_auto_detect(self):
        assert TranslateLocaleJob("en", "en").provider_source is None
        assert TranslateLocaleJob("en", "es").provider_source == "en"

    def test_provider_receives_source_locale(self, source, fake_provider):
        TranslateLocaleJob("en", "es").handle(source, fake_provider, sleeper=lambda s: None)
        assert {(src, target) for _, src, target in fake_provider.calls} == {("en", "es")}

    def test_sleep_after_every_batch(self, source, fake_provider):
        sleeper = MagicMock()

        TranslateLocaleJob("en", "es", tries=2, sleep=0.5).handle(
            source, fake_provider, sleeper=sleeper
        )

        # 5 переводов -> пауза после 2-го и 4-го
        assert sleeper.call_count == 2
        sleeper.assert_called_with(0.5)

    def test_escaped_value_is_not_double_escaped(self, catalog, fake_provider):
        catalog.set_flat("Tom & Jerry", None, "en")

        TranslateLocaleJob("en", "es").handle(catalog, fake_provider, sleeper=lambda s: None)

        assert fake_provider.calls[0][0] == "Tom & Jerry"
        assert catalog.get_flat("es")["Tom & Jerry"] == "[es] Tom &amp; Jerry"

    def test_provider_error_aborts_job(self, source, fake_provider):
        fake_provider.fail_on = "Bye"

        with pytest.raises(RuntimeError):
            TranslateLocaleJob("en", "es").handle(source, fake_provider, sleeper=lambda s: None)

        assert source.get_flat("es") == {"Hello": "[es] Hello"}
        assert source.get_namespace("es", "messages") == {}

    def test_payload_round_trip(self):
        job = TranslateLocaleJob("en", "es", tries=5, sleep=2.0)
        payload = job.to_payload()

        assert payload == {
            "job": "translate_locale",
            "source_locale": "en",
            "target_locale": "es",
            "tries": 5,
            "sleep": 2.0,
        }
        assert TranslateLocaleJob.from_payload(payload) == job


@pytest.mark.parametrize("value, expected", [
    (None, False),
    ("", False),
    ({}, False),
    ("x", True),
    ({"a": "b"}, True),
])
def test_is_translated(value, expected):
    assert is_translated(value) is expected
