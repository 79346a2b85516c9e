"""
Errors - исключения localizer.

Все ошибки наследуются от LocalizerError, CLI перехватывает только его
и завершает команду с кодом 1. Отсутствующие и битые файлы переводов
ошибкой не считаются (читаются как пустые).
"""

from typing import Optional


class LocalizerError(Exception):
    """Базовое исключение localizer."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class NoLocalesSelected(LocalizerError):
    """Для sync/generate не выбрано ни одной локали."""

    def __init__(self, message: str = "Не выбрано ни одной локали. Операция прервана."):
        super().__init__(message)


class InvalidKeyFormat(LocalizerError):
    """Ключ без сегмента namespace ('file[.key]')."""

    def __init__(self, key: str):
        super().__init__(
            f"Неверный формат ключа '{key}'. Ожидается 'namespace[.key]'."
        )
        self.key = key


class UnknownLocale(LocalizerError):
    """Локаль отсутствует в конфигурации."""

    def __init__(self, locale: str, role: str = ""):
        prefix = f"{role} локаль" if role else "Локаль"
        super().__init__(f"{prefix} '{locale}' не настроена.")
        self.locale = locale


class InsufficientLocales(LocalizerError):
    """Для перевода нужно минимум две настроенные локали."""

    def __init__(self, count: int):
        super().__init__(
            f"Нет целевой локали: настроено {count}, нужно минимум 2."
        )
        self.count = count


class MissingProvider(LocalizerError):
    """Не установлена библиотека провайдера перевода."""

    def __init__(self, package: str = "litellm"):
        super().__init__(
            f"Пакет '{package}' не установлен. "
            f"Установите: pip install 'localizer[translate]'"
        )
        self.package = package


class ConfigError(LocalizerError):
    """Не удалось прочитать файл конфигурации."""
