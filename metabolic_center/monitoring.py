"""
Мониторинг и error tracking через Sentry.

Если SENTRY_DSN не задан, все функции работают как no-op.
"""

import os
import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

logger = logging.getLogger(__name__)

_sentry_initialized = False

# Некритичные сетевые ошибки Telegram/OpenAI, которые не шлём в Sentry
NON_CRITICAL_PATTERNS = [
    'timeout',
    'timed out',
    'connection reset',
    'connection refused',
    'network is unreachable',
    'flood',
    'too many requests',
    'bad gateway',
    'service unavailable',
]

NON_CRITICAL_TYPES = [
    'TelegramNetworkError',
    'TelegramRetryAfter',
    'TimeoutError',
    'ConnectionError',
    'APIConnectionError',
    'APITimeoutError',
]

SENSITIVE_KEYS = ['token', 'password', 'secret', 'key']


def is_initialized() -> bool:
    return _sentry_initialized


def init_sentry(
    dsn: Optional[str] = None,
    environment: str = "production",
    traces_sample_rate: float = 0.1
) -> bool:
    """
    Инициализация Sentry.

    Args:
        dsn: Sentry DSN (если None, берется из SENTRY_DSN)
        environment: Окружение (production/staging/development)
        traces_sample_rate: Доля трассировки (0.0-1.0)

    Returns:
        True если Sentry включен
    """
    global _sentry_initialized

    if _sentry_initialized:
        logger.warning("Sentry уже инициализирован")
        return True

    sentry_dsn = dsn or os.getenv('SENTRY_DSN')
    if not sentry_dsn:
        logger.warning("Sentry DSN не указан - мониторинг отключен")
        return False

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                AioHttpIntegration(),
            ],
            attach_stacktrace=True,
            send_default_pii=False,  # медицинские данные пользователей не отправляем
            max_breadcrumbs=50,
            before_send=before_send_filter,
        )
    except Exception as e:
        logger.error(f"❌ Ошибка инициализации Sentry: {e}")
        return False

    _sentry_initialized = True
    logger.info(f"✅ Sentry инициализирован (environment={environment})")
    return True


def before_send_filter(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Фильтр событий перед отправкой в Sentry.

    Returns:
        Событие или None (не отправлять)
    """
    if 'exc_info' in hint:
        exc_type, exc_value, _ = hint['exc_info']

        if isinstance(exc_value, KeyboardInterrupt):
            return None

        error_str = str(exc_value).lower()
        if any(pattern in error_str for pattern in NON_CRITICAL_PATTERNS):
            return None

        error_type = exc_type.__name__ if exc_type else ''
        if error_type in NON_CRITICAL_TYPES:
            return None

    # Удаляем токены и ключи из breadcrumbs
    breadcrumbs = event.get('breadcrumbs')
    if isinstance(breadcrumbs, dict):
        breadcrumbs = breadcrumbs.get('values', [])

    for breadcrumb in breadcrumbs or []:
        data = breadcrumb.get('data')
        if not data:
            continue
        for key in list(data.keys()):
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                data[key] = '[FILTERED]'

    return event


def capture_exception(
    error: Exception,
    level: str = "error",
    extra: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None
) -> Optional[str]:
    """
    Отправка исключения в Sentry с контекстом.

    Returns:
        Event ID или None
    """
    if not _sentry_initialized:
        return None

    try:
        with sentry_sdk.new_scope() as scope:
            scope.level = level
            if extra:
                scope.set_context("extra_data", extra)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            event_id = sentry_sdk.capture_exception(error)
        logger.info(f"📤 Отправлено в Sentry: {event_id}")
        return event_id
    except Exception as e:
        logger.error(f"❌ Ошибка отправки в Sentry: {e}")
        return None


def capture_message(
    message: str,
    level: str = "info",
    tags: Optional[Dict[str, str]] = None
) -> Optional[str]:
    """Отправка сообщения в Sentry."""
    if not _sentry_initialized:
        return None

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            return sentry_sdk.capture_message(message, level=level)
    except Exception as e:
        logger.error(f"❌ Ошибка отправки сообщения в Sentry: {e}")
        return None


@contextmanager
def user_scope(user_id: int, username: Optional[str] = None):
    """
    Контекст пользователя для Sentry (только id и username).

    Пользователь задаётся в отдельном isolation scope на время блока with.
    """
    if not _sentry_initialized:
        yield
        return

    user_data = {"id": str(user_id)}
    if username:
        user_data["username"] = username

    with sentry_sdk.isolation_scope() as scope:
        scope.set_user(user_data)
        yield


def flush_events(timeout: int = 2):
    """Отправка накопленных событий перед завершением."""
    if not _sentry_initialized:
        return

    try:
        sentry_sdk.flush(timeout=timeout)
        logger.info("✅ События Sentry отправлены")
    except Exception as e:
        logger.error(f"❌ Ошибка отправки событий: {e}")
