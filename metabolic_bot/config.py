"""
Конфигурация Telegram бота.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Загружаем переменные окружения из .env (только для локального запуска)
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, '').strip()
    return int(value) if value.lstrip('-').isdigit() else default


class BotConfig:
    """Конфигурация бота."""

    # Telegram Bot Token (BOT_TOKEN или TELEGRAM_BOT_TOKEN)
    BOT_TOKEN = os.getenv('BOT_TOKEN') or os.getenv('TELEGRAM_BOT_TOKEN', '')

    # Username бота для реферальных ссылок (без @).
    # Если не задан - берётся из get_me() при запуске
    BOT_USERNAME = os.getenv('BOT_USERNAME', '').lstrip('@')

    # OpenAI
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY') or os.getenv('OPENAI_KEY', '')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o')

    # Администратор бота (/stats, /grant_pro)
    ADMIN_USER_ID_STR = os.getenv('ADMIN_USER_ID', '')
    ADMIN_USER_ID = int(ADMIN_USER_ID_STR) if ADMIN_USER_ID_STR.strip().isdigit() else None

    # Оплата - внешняя ссылка на checkout
    CHECKOUT_URL = os.getenv(
        'CHECKOUT_URL',
        'https://metaboliccenter.lemonsqueezy.com/checkout/buy/748aab66-5a40-492a-91f6-cda2f844723c'
    )
    PRO_PRICE = os.getenv('PRO_PRICE', '$19/mo')
    FUTURE_PRICE = os.getenv('FUTURE_PRICE', '$79/mo')

    # Бесплатные лимиты
    FREE_ANALYSIS_LIMIT = _int_env('FREE_ANALYSIS_LIMIT', 2)
    FREE_CHAT_LIMIT = _int_env('FREE_CHAT_LIMIT', 10)

    # Пробный период и рефералы (дни Pro)
    TRIAL_DAYS = _int_env('TRIAL_DAYS', 3)
    REFERRAL_BONUS_DAYS = _int_env('REFERRAL_BONUS_DAYS', 3)

    # Сколько последних сообщений чата передаём в модель
    CHAT_HISTORY_LIMIT = 6

    # Настройки базы данных
    DB_PATH = Path(os.getenv('DB_PATH') or Path(__file__).parent / 'database' / 'metabolic.db')

    # Напоминания (час по локальному времени пользователя)
    FOOD_REMINDER_HOUR = _int_env('FOOD_REMINDER_HOUR', 20)
    DETOX_REMINDER_HOUR = _int_env('DETOX_REMINDER_HOUR', 9)
    REMINDER_CHECK_INTERVAL = _int_env('REMINDER_CHECK_INTERVAL', 3600)
    REMINDERS_ENABLED = os.getenv('REMINDERS_ENABLED', '1').lower() in ('1', 'true', 'yes')

    # Health check
    HEALTH_CHECK_PORT = _int_env('HEALTH_CHECK_PORT', 8080)

    # Rate limiting
    RATE_LIMIT = _int_env('RATE_LIMIT', 20)
    RATE_LIMIT_PERIOD = _int_env('RATE_LIMIT_PERIOD', 60)

    @classmethod
    def validate(cls):
        """Проверяет, что все необходимые настройки заданы."""
        errors = []

        if not cls.BOT_TOKEN:
            errors.append("BOT_TOKEN не задан")

        if not cls.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY не задан")

        if cls.FREE_ANALYSIS_LIMIT < 0 or cls.FREE_CHAT_LIMIT < 0:
            errors.append("Бесплатные лимиты не могут быть отрицательными")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"  - {e}" for e in errors))

        return True

    @classmethod
    def is_admin(cls, user_id: int) -> bool:
        return cls.ADMIN_USER_ID is not None and user_id == cls.ADMIN_USER_ID
