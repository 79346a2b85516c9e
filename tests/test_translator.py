"""
Тесты LLM-провайдера перевода (litellm подменяется моком).
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from localizer import translator
from localizer.errors import MissingProvider
from localizer.translator import LLMTranslationProvider, locale_name


def completion_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_litellm(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(translator, "litellm", fake)
    monkeypatch.setattr(translator, "_HAS_LITELLM", True)
    return fake


class TestProviderAvailability:

    def test_missing_litellm(self, monkeypatch):
        monkeypatch.setattr(translator, "_HAS_LITELLM", False)

        with pytest.raises(MissingProvider):
            translator.ensure_provider_available()
        with pytest.raises(MissingProvider):
            LLMTranslationProvider()


class TestLLMTranslationProvider:

    def test_translate(self, fake_litellm):
        fake_litellm.completion.return_value = completion_response("Bienvenido")
        provider = LLMTranslationProvider(model="test/model", temperature=0.1)

        assert provider.translate("Welcome", "en", "es") == "Bienvenido"

        kwargs = fake_litellm.completion.call_args.kwargs
        assert kwargs["model"] == "test/model"
        assert kwargs["temperature"] == 0.1
        prompt = kwargs["messages"][-1]["content"]
        assert "from English" in prompt
        assert "to Spanish" in prompt
        assert prompt.endswith("Welcome")

    def test_auto_detect_prompt(self, fake_litellm):
        fake_litellm.completion.return_value = completion_response("Hola")
        LLMTranslationProvider().translate("Hello", None, "es")

        prompt = fake_litellm.completion.call_args.kwargs["messages"][-1]["content"]
        assert "detect the source language" in prompt

    @pytest.mark.parametrize("response, expected", [
        ('"Hola"', "Hola"),
        ("```\nHola\n```", "Hola"),
        ("  Hola  ", "Hola"),
        ("", "Hello"),
        (None, "Hello"),
    ])
    def test_response_cleanup(self, fake_litellm, response, expected):
        fake_litellm.completion.return_value = completion_response(response)
        assert LLMTranslationProvider().translate("Hello", "en", "es") == expected

    def test_empty_text_is_not_sent(self, fake_litellm):
        assert LLMTranslationProvider().translate("", "en", "es") == ""
        fake_litellm.completion.assert_not_called()

    @patch("localizer.translator.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep, fake_litellm):
        fake_litellm.completion.side_effect = [
            RuntimeError("rate limit"),
            completion_response("Hola"),
        ]

        assert LLMTranslationProvider().translate("Hello", "en", "es") == "Hola"
        assert fake_litellm.completion.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch("localizer.translator.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep, fake_litellm):
        fake_litellm.completion.side_effect = RuntimeError("down")

        with pytest.raises(RuntimeError):
            LLMTranslationProvider(max_retries=2).translate("Hello", "en", "es")
        assert fake_litellm.completion.call_count == 2

    @pytest.mark.parametrize("max_retries", [0, -1])
    def test_max_retries_must_be_positive(self, fake_litellm, max_retries):
        with pytest.raises(ValueError):
            LLMTranslationProvider(max_retries=max_retries)
        fake_litellm.completion.assert_not_called()


def test_locale_name():
    assert locale_name("es") == "Spanish"
    assert locale_name("pt-BR") == "Portuguese (pt-BR)"
    assert locale_name("xx") == "xx"
