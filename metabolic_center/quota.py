"""
Freemium-квоты.

Бесплатный тариф: ограниченное число анализов и чат-запросов.
Pro: безлимит. Пробный период и бонусы за рефералов дают Pro
на ограниченное время (поле trial_expires, unix-время в секундах).
"""

import time
from typing import Dict, Any, Optional

FREE_ANALYSIS_LIMIT = 2
FREE_CHAT_LIMIT = 10

KIND_ANALYSIS = 'analysis'
KIND_CHAT = 'chat'

# Тип использования -> поле счётчика в таблице users
COUNTER_FIELDS = {
    KIND_ANALYSIS: 'analysis_count',
    KIND_CHAT: 'chat_count',
}

SECONDS_PER_DAY = 86400


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def trial_active(user: Dict[str, Any], now: Optional[float] = None) -> bool:
    """Активен ли пробный/бонусный Pro-период."""
    return (user.get('trial_expires') or 0) > _now(now)


def has_pro(user: Dict[str, Any], now: Optional[float] = None) -> bool:
    """Pro-доступ: оплаченная подписка или активный пробный период."""
    return bool(user.get('is_pro')) or trial_active(user, now)


def get_limit(kind: str, analysis_limit: int = FREE_ANALYSIS_LIMIT,
              chat_limit: int = FREE_CHAT_LIMIT) -> Optional[int]:
    if kind == KIND_ANALYSIS:
        return analysis_limit
    if kind == KIND_CHAT:
        return chat_limit
    return None


def can_use(
    user: Dict[str, Any],
    kind: str,
    analysis_limit: int = FREE_ANALYSIS_LIMIT,
    chat_limit: int = FREE_CHAT_LIMIT,
    now: Optional[float] = None
) -> bool:
    """
    Проверка, может ли пользователь воспользоваться функцией.

    Args:
        user: Строка пользователя из БД
        kind: 'analysis' или 'chat' (остальные типы не ограничены)

    Returns:
        True если лимит не исчерпан
    """
    if has_pro(user, now):
        return True

    limit = get_limit(kind, analysis_limit, chat_limit)
    if limit is None:
        return True

    return (user.get(COUNTER_FIELDS[kind]) or 0) < limit


def remaining(
    user: Dict[str, Any],
    kind: str,
    analysis_limit: int = FREE_ANALYSIS_LIMIT,
    chat_limit: int = FREE_CHAT_LIMIT,
    now: Optional[float] = None
) -> Optional[int]:
    """Сколько бесплатных использований осталось. None = безлимит."""
    if has_pro(user, now):
        return None

    limit = get_limit(kind, analysis_limit, chat_limit)
    if limit is None:
        return None

    return max(0, limit - (user.get(COUNTER_FIELDS[kind]) or 0))


def grant_days(user: Dict[str, Any], days: int, now: Optional[float] = None) -> int:
    """
    Продлить Pro-период на days дней.

    Отсчёт идёт от текущего окончания периода, если он ещё не истёк,
    иначе от текущего момента.

    Returns:
        Новое значение trial_expires (также записывается в user)
    """
    start = max(_now(now), user.get('trial_expires') or 0)
    user['trial_expires'] = int(start + days * SECONDS_PER_DAY)
    return user['trial_expires']


def days_left(user: Dict[str, Any], now: Optional[float] = None) -> int:
    """Сколько полных и неполных дней Pro-периода осталось."""
    left = (user.get('trial_expires') or 0) - _now(now)
    if left <= 0:
        return 0
    return int((left + SECONDS_PER_DAY - 1) // SECONDS_PER_DAY)
