"""
Работа с часовыми поясами пользователей.

Пояс хранится как целое смещение от UTC в часах (users.tz_offset).
Все даты в БД - UTC в формате SQLite 'YYYY-MM-DD HH:MM:SS'.
"""

import re
from datetime import datetime, timedelta
from typing import Optional

MIN_TZ_OFFSET = -12
MAX_TZ_OFFSET = 14

SQLITE_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'

_OFFSET_RE = re.compile(r'^(?:utc|gmt)?\s*([+-]?)\s*(\d{1,2})(?::00)?$', re.IGNORECASE)


def parse_tz_offset(text: str) -> Optional[int]:
    """
    Разбор смещения от UTC.

    Примеры: '+3', '-5', '3', 'UTC+3', 'GMT-8', '+05:00'

    Returns:
        Смещение в часах или None
    """
    match = _OFFSET_RE.match((text or '').strip())
    if not match:
        return None

    sign, hours = match.groups()
    offset = int(hours) * (-1 if sign == '-' else 1)

    if MIN_TZ_OFFSET <= offset <= MAX_TZ_OFFSET:
        return offset
    return None


def format_tz_offset(offset: int) -> str:
    return f"UTC{'+' if offset >= 0 else '-'}{abs(offset)}"


def local_now(tz_offset: int, now_utc: Optional[datetime] = None) -> datetime:
    """Локальное время пользователя (naive datetime)."""
    now_utc = now_utc or datetime.utcnow()
    return now_utc + timedelta(hours=tz_offset or 0)


def local_day_start_utc(tz_offset: int, now_utc: Optional[datetime] = None) -> str:
    """
    Начало локального дня пользователя в UTC, в формате SQLite.

    Используется для выборок "за сегодня" с учётом пояса.
    """
    local = local_now(tz_offset, now_utc)
    local_midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return (local_midnight - timedelta(hours=tz_offset or 0)).strftime(SQLITE_TIME_FORMAT)
