"""
Реферальные коды и ссылки.
"""

import hashlib
import re
from datetime import datetime
from typing import Optional

REFERRAL_PREFIX = "ref_"

_CODE_RE = re.compile(r'^[A-Z0-9]{4,16}$')


def generate_referral_code(telegram_id: int, salt: str = '') -> str:
    """Генерирует 8-символьный реферальный код."""
    hash_input = f"{telegram_id}_{datetime.now().timestamp()}_{salt}"
    return hashlib.md5(hash_input.encode()).hexdigest()[:8].upper()


def build_referral_link(bot_username: str, code: str) -> str:
    return f"https://t.me/{bot_username}?start={REFERRAL_PREFIX}{code}"


def parse_referral_payload(payload: Optional[str]) -> Optional[str]:
    """
    Достаёт код из deep-link payload команды /start.

    '/start ref_ab12cd34' -> 'AB12CD34'
    """
    if not payload:
        return None

    for part in payload.split():
        if part.lower().startswith(REFERRAL_PREFIX):
            code = part[len(REFERRAL_PREFIX):].upper()
            if _CODE_RE.match(code):
                return code
    return None
