"""
Общие фикстуры для unit тестов.
"""

import pytest


@pytest.fixture
def make_user():
    """Фабрика строк пользователя в формате таблицы users."""
    def _make(**overrides):
        user = {
            'id': 1001,
            'username': 'tester',
            'first_name': 'Test',
            'gender': None,
            'age': None,
            'pregnancy_status': None,
            'goal': None,
            'height': None,
            'weight': None,
            'activity_level': None,
            'diet_restrictions': None,
            'is_pro': 0,
            'tz_offset': 0,
            'lang': 'en',
            'analysis_count': 0,
            'chat_count': 0,
            'trial_expires': 0,
            'trial_used': 0,
            'referral_code': None,
            'referred_by': 0,
            'reminders_enabled': 1,
            'is_new': False,
        }
        user.update(overrides)
        return user
    return _make
