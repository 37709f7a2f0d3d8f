"""
Unit тесты для валидатора переменных окружения.
"""

import pytest

from metabolic_bot.env_validator import EnvValidator

VALID_TOKEN = "123456789:" + "A" * 35


@pytest.fixture
def clean_env(monkeypatch):
    """Окружение без переменных бота."""
    names = set(EnvValidator.RECOMMENDED_VARS) | set(EnvValidator.NUMERIC_VARS) | set(EnvValidator.OPTIONAL_VARS)
    for name, (_, aliases) in EnvValidator.REQUIRED_VARS.items():
        names.add(name)
        names.update(aliases)
    for name in names:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestFieldValidators:

    def test_bot_token(self):
        assert EnvValidator.validate_bot_token(VALID_TOKEN) == (True, None)
        assert not EnvValidator.validate_bot_token("")[0]
        assert not EnvValidator.validate_bot_token("no-colon")[0]
        assert not EnvValidator.validate_bot_token("abc:" + "A" * 35)[0]
        assert not EnvValidator.validate_bot_token("123:short")[0]

    def test_openai_key(self):
        assert EnvValidator.validate_openai_key("sk-test")[0]
        assert not EnvValidator.validate_openai_key("pk-test")[0]

    def test_sentry_dsn(self):
        assert EnvValidator.validate_sentry_dsn("https://key@o1.ingest.sentry.io/1")[0]
        assert not EnvValidator.validate_sentry_dsn("ftp://key@host/1")[0]
        assert not EnvValidator.validate_sentry_dsn("https://host/1")[0]

    def test_number(self):
        assert EnvValidator.validate_number("20", 0, 23)[0]
        assert not EnvValidator.validate_number("25", 0, 23)[0]
        assert not EnvValidator.validate_number("x", 0, None)[0]


@pytest.mark.unit
class TestValidateAll:

    def test_valid_environment(self, clean_env):
        clean_env.setenv("BOT_TOKEN", VALID_TOKEN)
        clean_env.setenv("OPENAI_API_KEY", "sk-test")

        result = EnvValidator.validate_all()

        assert result['valid']
        assert result['errors'] == []
        assert len(result['warnings']) == len(EnvValidator.RECOMMENDED_VARS)

    def test_alias_accepted(self, clean_env):
        clean_env.setenv("TELEGRAM_BOT_TOKEN", VALID_TOKEN)
        clean_env.setenv("OPENAI_KEY", "sk-test")
        assert EnvValidator.validate_all()['valid']

    def test_missing_required(self, clean_env):
        result = EnvValidator.validate_all()
        assert not result['valid']
        assert len(result['errors']) == 2

    def test_strict_mode_fails_on_warnings(self, clean_env):
        clean_env.setenv("BOT_TOKEN", VALID_TOKEN)
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        assert not EnvValidator.validate_all(strict=True)['valid']

    def test_numeric_out_of_range(self, clean_env):
        clean_env.setenv("BOT_TOKEN", VALID_TOKEN)
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("FOOD_REMINDER_HOUR", "25")

        result = EnvValidator.validate_all()

        assert not result['valid']
        assert any("FOOD_REMINDER_HOUR" in error for error in result['errors'])

    def test_exit_when_invalid(self, clean_env):
        with pytest.raises(SystemExit):
            EnvValidator.validate_and_exit_if_invalid()
