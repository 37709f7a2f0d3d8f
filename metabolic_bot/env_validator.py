"""
Environment Variables Validator.

Проверяет наличие и валидность переменных окружения перед запуском.
"""

import os
import sys
import logging
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class EnvValidator:
    """Валидатор переменных окружения."""

    # Обязательные переменные: имя -> (описание, альтернативные имена)
    REQUIRED_VARS = {
        'BOT_TOKEN': ('Telegram Bot Token from @BotFather', ['TELEGRAM_BOT_TOKEN']),
        'OPENAI_API_KEY': ('OpenAI API key for analyses and chat', ['OPENAI_KEY']),
    }

    # Рекомендуемые переменные (warning если отсутствуют)
    RECOMMENDED_VARS = {
        'ADMIN_USER_ID': 'Telegram user ID of the admin (/stats, /grant_pro)',
        'SENTRY_DSN': 'Sentry DSN для error tracking',
        'CHECKOUT_URL': 'Checkout link for the Pro subscription',
    }

    # Числовые переменные: имя -> (минимум, максимум)
    NUMERIC_VARS = {
        'ADMIN_USER_ID': (1, None),
        'FREE_ANALYSIS_LIMIT': (0, None),
        'FREE_CHAT_LIMIT': (0, None),
        'TRIAL_DAYS': (0, 365),
        'REFERRAL_BONUS_DAYS': (0, 365),
        'FOOD_REMINDER_HOUR': (0, 23),
        'DETOX_REMINDER_HOUR': (0, 23),
        'REMINDER_CHECK_INTERVAL': (60, None),
        'HEALTH_CHECK_PORT': (1, 65535),
    }

    # Опциональные переменные
    OPTIONAL_VARS = {
        'OPENAI_MODEL': 'Vision-capable chat model (default: gpt-4o)',
        'BOT_USERNAME': 'Bot username for referral links',
        'DB_PATH': 'Path to the SQLite database file',
        'LOG_LEVEL': 'Logging level (DEBUG, INFO, WARNING, ERROR)',
        'LOG_FORMAT': 'json или human',
    }

    @staticmethod
    def get_value(name: str, aliases: Optional[List[str]] = None) -> Optional[str]:
        """Значение переменной с учётом альтернативных имён."""
        for candidate in [name] + list(aliases or []):
            value = os.getenv(candidate)
            if value:
                return value
        return None

    @staticmethod
    def validate_bot_token(token: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация Telegram Bot Token.

        Returns:
            (is_valid, error_message)
        """
        if not token:
            return False, "BOT_TOKEN is empty"

        parts = token.split(':')
        if len(parts) != 2:
            return False, "BOT_TOKEN has invalid format (should be <id>:<hash>)"

        bot_id, hash_part = parts

        if not bot_id.isdigit():
            return False, "BOT_TOKEN bot ID part should be numeric"

        if len(hash_part) < 30:
            return False, "BOT_TOKEN hash part seems too short"

        return True, None

    @staticmethod
    def validate_openai_key(key: str) -> Tuple[bool, Optional[str]]:
        if not key:
            return False, "OPENAI_API_KEY is empty"

        if not key.startswith('sk-'):
            return False, "OPENAI_API_KEY should start with 'sk-'"

        return True, None

    @staticmethod
    def validate_sentry_dsn(dsn: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация Sentry DSN (https://public_key@host/project_id).

        Returns:
            (is_valid, error_message)
        """
        if not dsn:
            return True, None

        parsed = urlparse(dsn)

        if parsed.scheme not in ['http', 'https']:
            return False, "Sentry DSN should use http or https"

        if not parsed.hostname:
            return False, "Sentry DSN missing hostname"

        if '@' not in dsn:
            return False, "Sentry DSN should contain @ separator"

        return True, None

    @staticmethod
    def validate_number(value: str, minimum: Optional[int], maximum: Optional[int]) -> Tuple[bool, Optional[str]]:
        try:
            number = int(value.strip())
        except ValueError:
            return False, f"'{value}' is not an integer"

        if minimum is not None and number < minimum:
            return False, f"should be >= {minimum}"

        if maximum is not None and number > maximum:
            return False, f"should be <= {maximum}"

        return True, None

    @classmethod
    def validate_all(cls, strict: bool = False) -> Dict[str, Any]:
        """
        Валидация всех переменных окружения.

        Args:
            strict: Если True, warnings тоже считаются ошибками

        Returns:
            {'valid': bool, 'errors': [...], 'warnings': [...], 'info': {...}}
        """
        errors = []
        warnings = []
        info = {}

        for var_name, (description, aliases) in cls.REQUIRED_VARS.items():
            value = cls.get_value(var_name, aliases)

            if not value:
                errors.append(f"❌ Missing required: {var_name} - {description}")
                continue

            if var_name == 'BOT_TOKEN':
                is_valid, error_msg = cls.validate_bot_token(value)
            else:
                is_valid, error_msg = cls.validate_openai_key(value)

            if is_valid:
                info[var_name] = "✅ Valid"
            else:
                errors.append(f"❌ Invalid {var_name}: {error_msg}")

        for var_name, description in cls.RECOMMENDED_VARS.items():
            value = os.getenv(var_name)

            if not value:
                message = f"⚠️  Missing recommended: {var_name} - {description}"
                if strict:
                    errors.append(message)
                else:
                    warnings.append(message)
                continue

            if var_name == 'SENTRY_DSN':
                is_valid, error_msg = cls.validate_sentry_dsn(value)
                if not is_valid:
                    warnings.append(f"⚠️  Invalid {var_name}: {error_msg}")
                    continue

            info[var_name] = "✅ Present"

        for var_name, (minimum, maximum) in cls.NUMERIC_VARS.items():
            value = os.getenv(var_name)
            if not value:
                continue

            is_valid, error_msg = cls.validate_number(value, minimum, maximum)
            if not is_valid:
                errors.append(f"❌ Invalid {var_name}: {error_msg}")

        for var_name in cls.OPTIONAL_VARS:
            if os.getenv(var_name):
                info[var_name] = "✅ Present"

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'info': info
        }

    @classmethod
    def validate_and_exit_if_invalid(cls, strict: bool = False):
        """
        Валидация с автоматическим выходом при ошибках.

        Args:
            strict: Если True, warnings тоже приводят к выходу
        """
        result = cls.validate_all(strict=strict)

        logger.info("=" * 60)
        logger.info("Environment Variables Validation")
        logger.info("=" * 60)

        for key, value in result['info'].items():
            logger.info(f"  {key}: {value}")

        for warning in result['warnings']:
            logger.warning(f"  {warning}")

        for error in result['errors']:
            logger.error(f"  {error}")

        logger.info("=" * 60)

        if not result['valid']:
            logger.error("❌ Environment validation failed! Fix errors above.")
            sys.exit(1)

        logger.info("✅ Environment validation passed!")


__all__ = ['EnvValidator']
