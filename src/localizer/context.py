"""
Активная локаль текущего запроса / процесса.

Хранится в contextvars: middleware устанавливает её на время запроса
и восстанавливает предыдущее значение после ответа.
"""

from contextvars import ContextVar, Token

_DEFAULT_LOCALE = "en"
_current_locale: ContextVar[str] = ContextVar("localizer_locale", default=_DEFAULT_LOCALE)


def set_locale(locale: str) -> Token:
    """Устанавливает текущую локаль, возвращает токен для reset_locale."""
    return _current_locale.set(locale)


def get_locale() -> str:
    """Возвращает текущую локаль."""
    return _current_locale.get()


def reset_locale(token: Token) -> None:
    _current_locale.reset(token)
