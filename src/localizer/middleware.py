"""
Middleware - определение локали для каждого запроса (Starlette / FastAPI).

Порядок (побеждает первая локаль из config.available):
    1. Query-параметр       ?locale=fr
    2. Заголовок            X-Locale: fr
    3. Сессия               request.session["locale"] (если есть SessionMiddleware)
    4. Пользователь         request.user.locale / request.user.get_locale()
    5. Accept-Language      лучшее совпадение с доступными локалями
    6. config.default

Результат: активная локаль (context.set_locale) на время запроса, запись
в сессию, request.state.locale = {"current", "dir", "available"} для шаблонов,
заголовок ответа Content-Language.

Подключение:
    app = FastAPI()
    setup_localization(app, load_config())
    app.add_middleware(SessionMiddleware, secret_key="...")
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .config import LocalizerConfig
from .context import get_locale, reset_locale, set_locale

logger = logging.getLogger(__name__)

QUERY_PARAM = "locale"
HEADER = "X-Locale"
SESSION_KEY = "locale"


def _normalize(locale: str) -> str:
    return locale.strip().replace("_", "-").lower()


def _primary(locale: str) -> str:
    return _normalize(locale).split("-")[0]


def parse_accept_language(header: Optional[str]) -> List[str]:
    """
    Разбирает Accept-Language в список языков по убыванию q.

    'fr-CH, fr;q=0.9, en;q=0.8, *;q=0.5' -> ['fr-CH', 'fr', 'en']
    """
    if not header:
        return []

    weighted = []
    for index, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        language = pieces[0].strip()
        if not language or language == "*":
            continue

        quality = 1.0
        for param in pieces[1:]:
            match = re.match(r"\s*q\s*=\s*([0-9.]+)\s*$", param)
            if match:
                try:
                    quality = float(match.group(1))
                except ValueError:
                    quality = 0.0
        if quality <= 0:
            continue
        weighted.append((-quality, index, language))

    return [language for _, _, language in sorted(weighted)]


def preferred_locale(accept_language: Optional[str],
                     available: Iterable[str]) -> Optional[str]:
    """
    Лучшее совпадение Accept-Language с доступными локалями.

    Для каждого языка по приоритету: точное совпадение, затем совпадение
    основного тега ('fr-CH' -> 'fr', 'en' -> 'en-US').
    """
    available = list(available)
    by_normalized = {_normalize(code): code for code in available}

    for language in parse_accept_language(accept_language):
        normalized = _normalize(language)
        if normalized in by_normalized:
            return by_normalized[normalized]

        primary = _primary(language)
        if primary in by_normalized:
            return by_normalized[primary]
        for code in available:
            if _primary(code) == primary:
                return code
    return None


def user_locale(user: Any) -> Optional[str]:
    """Предпочтение пользователя: атрибут locale или метод get_locale()."""
    if user is None or not getattr(user, "is_authenticated", True):
        return None
    getter = getattr(user, "get_locale", None)
    if callable(getter):
        return getter()
    value = getattr(user, "locale", None)
    return value if isinstance(value, str) else None


def resolve_locale(config: LocalizerConfig, *,
                   query: Optional[str] = None,
                   header: Optional[str] = None,
                   session: Optional[str] = None,
                   user: Optional[str] = None,
                   accept_language: Optional[str] = None) -> str:
    """Выбирает локаль по сигналам в порядке приоритета."""
    for candidate in (query, header, session, user):
        if config.is_available(candidate):
            return candidate

    preferred = preferred_locale(accept_language, config.available.keys())
    if config.is_available(preferred):
        return preferred

    return config.default


class LocaleMiddleware(BaseHTTPMiddleware):
    """Определяет и применяет локаль для каждого запроса."""

    def __init__(self, app: ASGIApp, config: LocalizerConfig,
                 query_param: str = QUERY_PARAM, header: str = HEADER,
                 session_key: str = SESSION_KEY):
        super().__init__(app)
        self.config = config
        self.query_param = query_param
        self.header = header
        self.session_key = session_key

    def determine_locale(self, request: Request) -> str:
        session = request.session if "session" in request.scope else {}
        user = request.user if "user" in request.scope else None

        return resolve_locale(
            self.config,
            query=request.query_params.get(self.query_param),
            header=request.headers.get(self.header),
            session=session.get(self.session_key),
            user=user_locale(user),
            accept_language=request.headers.get("accept-language"),
        )

    def locale_state(self, locale: str) -> Dict[str, Any]:
        return {
            "current": locale,
            "dir": self.config.locale_dir(locale),
            "available": self.config.available,
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        locale = self.determine_locale(request)
        logger.debug("Локаль запроса %s: %s", request.url.path, locale)

        if "session" in request.scope:
            request.session[self.session_key] = locale
        request.state.locale = self.locale_state(locale)

        token = set_locale(locale)
        try:
            response = await call_next(request)
        finally:
            reset_locale(token)

        response.headers.setdefault("Content-Language", locale)
        return response


def current_locale(request: Request) -> Dict[str, Any]:
    """
    FastAPI-зависимость: состояние локали запроса.

        @app.get("/")
        def index(locale: dict = Depends(current_locale)): ...
    """
    state = getattr(request.state, "locale", None)
    if state is None:
        locale = get_locale()
        return {"current": locale, "dir": "ltr", "available": {}}
    return state


def setup_localization(app: FastAPI, config: LocalizerConfig, **options: Any) -> None:
    """Подключает LocaleMiddleware к FastAPI-приложению."""
    app.add_middleware(LocaleMiddleware, config=config, **options)
    logger.info("Локализация подключена: %s (по умолчанию %s)",
                ", ".join(config.available), config.default)
