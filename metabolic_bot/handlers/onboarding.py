"""
Онбординг: пол, беременность, возраст, цель.
"""

import logging
from typing import Dict, Any

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from metabolic_bot.db import Database
from metabolic_bot.keyboards import (
    get_main_menu_keyboard,
    get_pregnancy_keyboard,
    get_goal_keyboard,
)
from metabolic_bot.states import Onboarding
from metabolic_center.profile import GENDERS, PREGNANCY_STATUSES, GOALS, parse_age

logger = logging.getLogger(__name__)
router = Router()

AGE_QUESTION = "📅 Your age? (type a number)"


@router.callback_query(F.data.in_(GENDERS.keys()))
async def select_gender(callback: CallbackQuery, state: FSMContext, user: Dict[str, Any], db: Database):
    gender = GENDERS[callback.data]

    # Для мужчин статус беременности не хранится
    fields = {'gender': gender}
    if gender == 'male':
        fields['pregnancy_status'] = None
    await db.update_user(user['id'], **fields)

    await callback.answer()
    await callback.message.edit_text(f"✅ Sex: {gender.capitalize()}")

    if gender == 'female':
        await state.set_state(Onboarding.pregnancy)
        await callback.message.answer(
            "🤰 Are you pregnant or breastfeeding?",
            reply_markup=get_pregnancy_keyboard()
        )
    else:
        await state.set_state(Onboarding.age)
        await callback.message.answer(AGE_QUESTION)


@router.callback_query(F.data.in_(PREGNANCY_STATUSES.keys()))
async def select_pregnancy(callback: CallbackQuery, state: FSMContext, user: Dict[str, Any], db: Database):
    status = PREGNANCY_STATUSES[callback.data]
    await db.update_user(user['id'], pregnancy_status=status)

    await state.set_state(Onboarding.age)
    await callback.answer()
    await callback.message.edit_text(f"✅ {status.capitalize()}")
    await callback.message.answer(AGE_QUESTION)


@router.message(Onboarding.age, F.text)
async def enter_age(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    age = parse_age(message.text)
    if age is None:
        await message.answer("Enter valid age (1-119).")
        return

    await db.update_user(user['id'], age=age)
    await state.set_state(Onboarding.goal)
    await message.answer(f"✅ Age: {age}\n\n🎯 Primary goal?", reply_markup=get_goal_keyboard())


@router.callback_query(F.data.in_(GOALS.keys()))
async def select_goal(callback: CallbackQuery, state: FSMContext, user: Dict[str, Any], db: Database):
    goal = GOALS[callback.data]
    await db.update_user(user['id'], goal=goal)

    # История чата хранится в данных FSM, поэтому сбрасываем только состояние
    await state.set_state(None)
    await callback.answer()
    await callback.message.edit_text(f"✅ Goal: {goal}")
    await callback.message.answer("✅ Profile complete! Use the menu below 👇", reply_markup=get_main_menu_keyboard())
    logger.info(f"✅ Профиль пользователя {user['id']} заполнен")
