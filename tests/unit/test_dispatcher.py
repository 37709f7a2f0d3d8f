"""
Unit тесты маршрутизации апдейтов через собранный диспетчер.

Тестируем:
- Кнопки меню срабатывают раньше ожидаемого ввода
- Ожидаемый ввод срабатывает раньше свободного чата
- Свободный текст без состояния уходит в чат
"""

import itertools

import pytest
from unittest.mock import AsyncMock, MagicMock

from aiogram.types import Update

from metabolic_bot.keyboards import BTN_SYMPTOMS, BTN_UPGRADE, BTN_PROFILE
from metabolic_bot.main import create_dispatcher
from metabolic_bot.states import Awaiting, Onboarding

_update_ids = itertools.count(1)


@pytest.fixture(scope="module")
def dispatcher():
    # Роутеры модульные, подключить их к диспетчеру можно только один раз
    return create_dispatcher(MagicMock(), MagicMock())


@pytest.fixture
def bot():
    mock = AsyncMock()
    mock.id = 42
    return mock


@pytest.fixture
def user_id():
    return 5000 + next(_update_ids)


@pytest.fixture
def db(make_user, user_id):
    mock = AsyncMock()
    mock.ensure_user.return_value = make_user(id=user_id, gender='female', age=34, goal='energy')
    mock.increment_counter.return_value = 1
    mock.get_symptoms.return_value = []
    return mock


@pytest.fixture
def ai():
    mock = AsyncMock()
    mock.chat.return_value = "Drink water."
    mock.complete.return_value = "Looks like a sugar crash."
    return mock


@pytest.fixture
def state(dispatcher, bot, user_id):
    return dispatcher.fsm.get_context(bot=bot, chat_id=user_id, user_id=user_id)


async def send_text(dispatcher, bot, db, ai, user_id, text):
    update = Update.model_validate({
        'update_id': next(_update_ids),
        'message': {
            'message_id': 1,
            'date': 1700000000,
            'chat': {'id': user_id, 'type': 'private'},
            'from': {'id': user_id, 'is_bot': False, 'first_name': 'Anna'},
            'text': text,
        },
    }, context={'bot': bot})
    await dispatcher.feed_update(bot, update, db=db, ai=ai)


@pytest.mark.unit
class TestMenuPriority:
    """Кнопки меню отменяют ожидаемый ввод."""

    @pytest.mark.asyncio
    async def test_button_wins_over_pending_food(self, dispatcher, bot, db, ai, user_id, state):
        await state.set_state(Awaiting.food)

        await send_text(dispatcher, bot, db, ai, user_id, BTN_SYMPTOMS)

        assert await state.get_state() == Awaiting.symptoms.state
        ai.estimate_food.assert_not_awaited()
        db.add_food_entry.assert_not_awaited()
        db.increment_counter.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_button_wins_over_pending_symptoms(self, dispatcher, bot, db, ai, user_id, state):
        await state.set_state(Awaiting.symptoms)

        await send_text(dispatcher, bot, db, ai, user_id, BTN_UPGRADE)

        assert await state.get_state() is None
        db.log_event.assert_awaited_once_with(user_id, 'UPGRADE_CLICK')
        db.add_symptom.assert_not_awaited()
        ai.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_button_keeps_chat_history(self, dispatcher, bot, db, ai, user_id, state):
        await state.set_state(Awaiting.symptoms)
        await state.update_data(history=[{'role': 'user', 'content': 'hi'}])

        await send_text(dispatcher, bot, db, ai, user_id, BTN_PROFILE)

        assert await state.get_state() is None
        assert (await state.get_data())['history'] == [{'role': 'user', 'content': 'hi'}]


@pytest.mark.unit
class TestInputPriority:
    """Ожидаемый ввод обрабатывается раньше свободного чата."""

    @pytest.mark.asyncio
    async def test_symptom_text_recorded(self, dispatcher, bot, db, ai, user_id, state):
        await state.set_state(Awaiting.symptoms)

        await send_text(dispatcher, bot, db, ai, user_id, "Tired after lunch")

        db.add_symptom.assert_awaited_once_with(user_id, "Tired after lunch")
        db.log_event.assert_awaited_once_with(user_id, 'SYMPTOM', "Tired after lunch")
        ai.chat.assert_not_awaited()
        assert await state.get_state() is None

    @pytest.mark.asyncio
    async def test_age_during_onboarding(self, dispatcher, bot, db, ai, user_id, state):
        await state.set_state(Onboarding.age)

        await send_text(dispatcher, bot, db, ai, user_id, "34")

        db.update_user.assert_awaited_once_with(user_id, age=34)
        assert await state.get_state() == Onboarding.goal.state
        ai.chat.assert_not_awaited()
        db.increment_counter.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_free_text_goes_to_chat(self, dispatcher, bot, db, ai, user_id, state):
        await send_text(dispatcher, bot, db, ai, user_id, "Is coffee bad for me?")

        ai.chat.assert_awaited_once()
        db.log_event.assert_awaited_once_with(user_id, 'CHAT', "Is coffee bad for me?")
        db.add_symptom.assert_not_awaited()
        history = (await state.get_data())['history']
        assert history[-1] == {'role': 'assistant', 'content': "Drink water."}
