"""
Состояния бота для управления диалогом.
"""

from aiogram.fsm.state import State, StatesGroup


class Onboarding(StatesGroup):
    """Заполнение профиля после /start."""

    gender = State()        # Ожидание выбора пола (inline)
    pregnancy = State()     # Беременность/ГВ (только для женщин)
    age = State()           # Ожидание возраста текстом
    goal = State()          # Ожидание выбора цели (inline)


class Awaiting(StatesGroup):
    """Ожидание ввода после нажатия кнопки меню."""

    symptoms = State()      # Описание симптомов
    document = State()      # Фото медицинского документа
    food = State()          # Описание блюда для дневника
    timezone = State()      # Смещение от UTC
