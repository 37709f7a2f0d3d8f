"""
Unit тесты для обработчиков бота (aiogram объекты заменены моками).

Тестируем:
- Онбординг (пол, возраст)
- Сброс ожидаемого ввода кнопками меню
- Paywall перед платными функциями
- Чат с историей
- Анализ фото и документов
- Пробный период и админ-команды
"""

import io
import pytest
from unittest.mock import AsyncMock, MagicMock

from aiogram.filters import CommandObject

from metabolic_bot.config import BotConfig
from metabolic_bot.handlers import onboarding, menu, chat, analysis, settings, admin, detox, symptoms
from metabolic_bot.states import Onboarding, Awaiting
from metabolic_center.prompts import ANALYSIS_PROMPT, DOC_PROMPT


@pytest.fixture
def message():
    mock = AsyncMock()
    mock.text = "hello"
    mock.caption = None
    mock.from_user = MagicMock(id=1001, username='tester', first_name='Test')
    return mock


@pytest.fixture
def state():
    mock = AsyncMock()
    mock.get_state.return_value = None
    mock.get_data.return_value = {}
    return mock


@pytest.fixture
def db():
    mock = AsyncMock()
    mock.increment_counter.return_value = 1
    return mock


@pytest.fixture
def ai():
    mock = AsyncMock()
    mock.chat.return_value = "Drink water."
    mock.complete.return_value = "Plan."
    mock.analyze_image.return_value = "Report."
    return mock


def sent_texts(message):
    return [c.args[0] for c in message.answer.await_args_list]


@pytest.mark.unit
class TestOnboarding:

    @pytest.mark.asyncio
    async def test_female_asked_about_pregnancy(self, state, db, make_user):
        callback = AsyncMock()
        callback.data = 'gender_female'

        await onboarding.select_gender(callback, state, make_user(), db)

        db.update_user.assert_awaited_once_with(1001, gender='female')
        state.set_state.assert_awaited_once_with(Onboarding.pregnancy)

    @pytest.mark.asyncio
    async def test_male_goes_to_age(self, state, db, make_user):
        callback = AsyncMock()
        callback.data = 'gender_male'

        await onboarding.select_gender(callback, state, make_user(), db)

        db.update_user.assert_awaited_once_with(1001, gender='male', pregnancy_status=None)
        state.set_state.assert_awaited_once_with(Onboarding.age)

    @pytest.mark.asyncio
    async def test_invalid_age(self, message, state, db, make_user):
        message.text = "abc"
        await onboarding.enter_age(message, state, make_user(), db)

        assert sent_texts(message) == ["Enter valid age (1-119)."]
        db.update_user.assert_not_awaited()
        state.set_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_age(self, message, state, db, make_user):
        message.text = "34"
        await onboarding.enter_age(message, state, make_user(), db)

        db.update_user.assert_awaited_once_with(1001, age=34)
        state.set_state.assert_awaited_once_with(Onboarding.goal)

    @pytest.mark.asyncio
    async def test_goal_keeps_chat_history(self, state, db, make_user):
        callback = AsyncMock()
        callback.data = 'goal_weight'

        await onboarding.select_goal(callback, state, make_user(), db)

        db.update_user.assert_awaited_once_with(1001, goal='Weight Optimization')
        state.set_state.assert_awaited_once_with(None)
        state.clear.assert_not_awaited()


@pytest.mark.unit
class TestMenu:

    @pytest.mark.asyncio
    async def test_button_cancels_pending_input(self, message, state):
        state.get_state.return_value = Awaiting.symptoms.state
        await menu.menu_analyze(message, state)
        state.set_state.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_symptoms_button_awaits_input(self, message, state):
        await menu.menu_symptoms(message, state)
        state.set_state.assert_awaited_once_with(Awaiting.symptoms)

    @pytest.mark.asyncio
    async def test_meal_plan_paywalled(self, message, state, db, ai, make_user):
        user = make_user(chat_count=BotConfig.FREE_CHAT_LIMIT)

        await menu.menu_meal_plan(message, state, user, db, ai)

        ai.complete.assert_not_awaited()
        db.increment_counter.assert_not_awaited()
        assert "Free limit reached" in sent_texts(message)[0]

    @pytest.mark.asyncio
    async def test_meal_plan_generated(self, message, state, db, ai, make_user):
        await menu.menu_meal_plan(message, state, make_user(gender='male', age=40), db, ai)

        db.increment_counter.assert_awaited_once_with(1001, 'chat_count')
        db.log_event.assert_awaited_once_with(1001, 'MEAL_PLAN')
        assert "Patient: male, 40 years" in ai.complete.await_args.args[1]
        assert "Plan." in sent_texts(message)

    @pytest.mark.asyncio
    async def test_ai_error_reported(self, message, state, db, ai, make_user):
        ai.complete.side_effect = RuntimeError("api down")
        await menu.menu_supplements(message, state, make_user(), db, ai)
        assert sent_texts(message)[-1] == menu.ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_upgrade_click_logged(self, message, state, db, make_user):
        await menu.menu_upgrade(message, state, make_user(), db)
        db.log_event.assert_awaited_once_with(1001, 'UPGRADE_CLICK')

    def test_profile_free(self, make_user):
        text = menu.format_profile(make_user(gender='female', age=30, pregnancy_status='pregnant', analysis_count=1))
        assert "Status: pregnant" in text
        assert f"Analyses: 1/{BotConfig.FREE_ANALYSIS_LIMIT}" in text
        assert "Upgrade to Pro" in text

    def test_profile_pro(self, make_user):
        text = menu.format_profile(make_user(is_pro=1, chat_count=50))
        assert "Chats: 50/∞" in text
        assert "Pro Member" in text


@pytest.mark.unit
class TestChat:

    def test_history_trimmed(self):
        history = []
        for i in range(10):
            history = chat.append_history(history, 'user', str(i), limit=6)
        assert [m['content'] for m in history] == ['4', '5', '6', '7', '8', '9']

    @pytest.mark.asyncio
    async def test_chat_reply_saved_to_history(self, message, state, db, ai, make_user):
        await chat.health_chat(message, state, make_user(), db, ai)

        db.increment_counter.assert_awaited_once_with(1001, 'chat_count')
        history = state.update_data.await_args.kwargs['history']
        assert history == [
            {'role': 'user', 'content': 'hello'},
            {'role': 'assistant', 'content': 'Drink water.'},
        ]

    @pytest.mark.asyncio
    async def test_chat_limit(self, message, state, db, ai, make_user):
        await chat.health_chat(message, state, make_user(chat_count=BotConfig.FREE_CHAT_LIMIT), db, ai)
        ai.chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_trial_user_not_limited(self, message, state, db, ai, make_user):
        user = make_user(chat_count=100, trial_expires=4_000_000_000)
        await chat.health_chat(message, state, user, db, ai)
        ai.chat.assert_awaited_once()


@pytest.mark.unit
class TestSymptoms:

    @pytest.mark.asyncio
    async def test_symptom_recorded_and_analyzed(self, message, state, db, ai, make_user):
        message.text = "headache after lunch"
        db.get_symptoms.return_value = [{'created_at': '2024-03-01 10:00:00', 'text': 'headache after lunch'}]

        await symptoms.track_symptoms(message, state, make_user(), db, ai)

        state.set_state.assert_awaited_once_with(None)
        db.add_symptom.assert_awaited_once_with(1001, "headache after lunch")
        request = ai.complete.await_args.args[1]
        assert "Symptom history:\n2024-03-01 10:00:00: headache after lunch" in request
        assert request.endswith("Latest: headache after lunch")


@pytest.mark.unit
class TestAnalysis:

    @pytest.mark.asyncio
    async def test_blood_test_photo(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        bot.download.return_value = io.BytesIO(b'image')
        message.photo = [MagicMock(), MagicMock()]

        await analysis.handle_photo(message, state, make_user(), db, ai, bot)

        bot.download.assert_awaited_once_with(message.photo[-1])
        assert ai.analyze_image.await_args.args[0] == ANALYSIS_PROMPT
        assert ai.analyze_image.await_args.args[1] == b'image'
        db.log_event.assert_awaited_once_with(1001, 'ANALYSIS', '#1')
        assert any("Free analyses remaining: 1/2" in text for text in sent_texts(message))

    @pytest.mark.asyncio
    async def test_document_mode(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        bot.download.return_value = io.BytesIO(b'image')
        message.photo = [MagicMock()]
        state.get_state.return_value = Awaiting.document.state

        await analysis.handle_photo(message, state, make_user(), db, ai, bot)

        assert ai.analyze_image.await_args.args[0] == DOC_PROMPT
        state.set_state.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_photo_keeps_onboarding_step(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        bot.download.return_value = io.BytesIO(b'image')
        message.photo = [MagicMock()]
        state.get_state.return_value = Onboarding.age.state

        await analysis.handle_photo(message, state, make_user(), db, ai, bot)

        state.set_state.assert_not_awaited()
        assert ai.analyze_image.await_args.args[0] == ANALYSIS_PROMPT

    @pytest.mark.asyncio
    async def test_image_document_keeps_symptom_input(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        bot.download.return_value = io.BytesIO(b'image')
        message.document = MagicMock(mime_type='image/png')
        state.get_state.return_value = Awaiting.symptoms.state

        await analysis.handle_document(message, state, make_user(), db, ai, bot)

        state.set_state.assert_not_awaited()
        db.log_event.assert_awaited_once_with(1001, 'ANALYSIS', '#1 (doc)')

    @pytest.mark.asyncio
    async def test_analysis_limit(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        await analysis.handle_photo(message, state, make_user(analysis_count=2), db, ai, bot)

        bot.download.assert_not_awaited()
        db.increment_counter.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_analysis_not_charged(self, message, state, db, ai, make_user):
        bot = AsyncMock()
        bot.download.return_value = io.BytesIO(b'image')
        message.photo = [MagicMock()]
        ai.analyze_image.side_effect = RuntimeError("timeout")

        await analysis.handle_photo(message, state, make_user(), db, ai, bot)

        db.increment_counter.assert_not_awaited()
        assert sent_texts(message)[-1] == "❌ Error. Try again or send a clearer photo."

    @pytest.mark.asyncio
    async def test_non_image_document(self, message, state, db, ai, make_user):
        message.document = MagicMock(mime_type='application/pdf')
        await analysis.handle_document(message, state, make_user(), db, ai, AsyncMock())
        assert sent_texts(message) == ["📄 Send medical documents as photos (JPG/PNG)."]


@pytest.mark.unit
class TestSettings:

    @pytest.mark.asyncio
    async def test_trial_activated(self, message, db, make_user):
        await settings.cmd_trial(message, make_user(), db)

        kwargs = db.update_user.await_args.kwargs
        assert kwargs['trial_used'] == 1
        assert kwargs['trial_expires'] > 0
        db.log_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_trial_only_once(self, message, db, make_user):
        await settings.cmd_trial(message, make_user(trial_used=1), db)
        db.update_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timezone_argument(self, message, state, db, make_user):
        command = CommandObject(prefix='/', command='timezone', args='+3')
        await settings.cmd_timezone(message, command, state, make_user(), db)
        db.update_user.assert_awaited_once_with(1001, tz_offset=3)

    @pytest.mark.asyncio
    async def test_invalid_timezone_keeps_waiting(self, message, state, db, make_user):
        message.text = "Moscow"
        await settings.enter_timezone(message, state, make_user(), db)

        db.update_user.assert_not_awaited()
        state.set_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reminders_off(self, message, db, make_user):
        command = CommandObject(prefix='/', command='reminders', args='off')
        await settings.cmd_reminders(message, command, make_user(), db)
        db.update_user.assert_awaited_once_with(1001, reminders_enabled=0)


@pytest.mark.unit
class TestDetoxHandlers:

    def test_intro_when_not_started(self):
        text, _ = detox.detox_view(None)
        assert "7-Day Metabolic Detox" in text

    @pytest.mark.asyncio
    async def test_last_day_completion(self, db, make_user):
        db.get_detox.return_value = {
            'user_id': 1001, 'day': 7, 'completed_days': '1,2,3,4,5,6', 'started_at': '2024-03-01 08:00:00'
        }
        callback = AsyncMock()

        await detox.detox_done(callback, make_user(), db)

        db.update_detox.assert_awaited_once_with(1001, 7, '1,2,3,4,5,6,7')
        db.log_event.assert_awaited_once_with(1001, 'DETOX_DONE')

    @pytest.mark.asyncio
    async def test_done_without_programme(self, db, make_user):
        db.get_detox.return_value = None
        callback = AsyncMock()

        await detox.detox_done(callback, make_user(), db)

        db.update_detox.assert_not_awaited()
        assert callback.answer.await_args.kwargs['show_alert']


@pytest.mark.unit
class TestAdmin:

    @pytest.fixture(autouse=True)
    def admin_id(self, monkeypatch):
        monkeypatch.setattr(BotConfig, 'ADMIN_USER_ID', 42)

    def test_format_stats(self):
        text = admin.format_stats({
            'total_users': 3, 'pro_users': 1, 'total_analyses': 5, 'total_chats': 9,
            'today_users': 1, 'today_activity': 4, 'detox_started': 2,
            'recent_users': [{'gender': 'male', 'age': 40, 'goal': 'General Health',
                              'analysis_count': 2, 'chat_count': 3, 'joined_at': '2024-03-01 10:00:00'}],
        })
        assert "👥 Total users: 3" in text
        assert "• male, 40y, General Health - 🔬2 💬3 (2024-03-01)" in text

    @pytest.mark.asyncio
    async def test_stats_hidden_from_users(self, message, db):
        await admin.cmd_stats(message, db)
        db.stats.assert_not_awaited()
        message.answer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_grant_pro(self, message, db):
        message.from_user.id = 42
        db.get_user.return_value = {'id': 7}
        command = CommandObject(prefix='/', command='grant_pro', args='7')

        await admin.cmd_set_pro(message, command, db)

        db.update_user.assert_awaited_once_with(7, is_pro=1)

    @pytest.mark.asyncio
    async def test_revoke_pro_unknown_user(self, message, db):
        message.from_user.id = 42
        db.get_user.return_value = None
        command = CommandObject(prefix='/', command='revoke_pro', args='7')

        await admin.cmd_set_pro(message, command, db)

        db.update_user.assert_not_awaited()
