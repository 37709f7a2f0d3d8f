"""
Дневник питания: запись блюд с оценкой калорий и БЖУ.
"""

import logging
from typing import Dict, Any

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from metabolic_bot.db import Database
from metabolic_bot.keyboards import get_food_diary_keyboard
from metabolic_bot.states import Awaiting
from metabolic_bot.utils.messages import answer_markdown
from metabolic_bot.utils.paywall import ensure_quota
from metabolic_bot.utils.timezone import local_day_start_utc
from metabolic_center import quota
from metabolic_center.ai_client import HealthAI
from metabolic_center.food import format_day_summary

logger = logging.getLogger(__name__)
router = Router()

MAX_MEAL_TEXT = 500


async def today_summary(user: Dict[str, Any], db: Database) -> str:
    """Сводка за сегодня по локальному дню пользователя."""
    since = local_day_start_utc(user.get('tz_offset') or 0)
    entries = await db.get_food_since(user['id'], since)
    return format_day_summary(entries)


async def show_food_diary(message: Message, user: Dict[str, Any], db: Database):
    await answer_markdown(message, await today_summary(user, db), reply_markup=get_food_diary_keyboard())


@router.message(Command("food"))
async def cmd_food(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    await state.set_state(None)
    await show_food_diary(message, user, db)


@router.callback_query(F.data == "food_add")
async def food_add(callback: CallbackQuery, state: FSMContext):
    await state.set_state(Awaiting.food)
    await callback.answer()
    await callback.message.answer(
        "🍽 Describe what you ate, e.g. _two eggs, toast with butter, coffee with milk_",
        parse_mode="Markdown"
    )


@router.callback_query(F.data == "food_today")
async def food_today(callback: CallbackQuery, user: Dict[str, Any], db: Database):
    await callback.answer()
    await show_food_diary(callback.message, user, db)


@router.message(Awaiting.food, F.text)
async def log_meal(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI):
    """Оценка блюда моделью и запись в дневник."""
    await state.set_state(None)

    if not await ensure_quota(message, user, quota.KIND_CHAT):
        return

    meal_text = message.text.strip()[:MAX_MEAL_TEXT]
    await db.increment_counter(user['id'], quota.COUNTER_FIELDS[quota.KIND_CHAT])
    await message.answer("🍽 Estimating calories...")

    try:
        estimate = await ai.estimate_food(meal_text)
    except Exception as e:
        logger.error(f"❌ Ошибка оценки блюда для {user['id']}: {e}", exc_info=True)
        await message.answer("❌ Error. Try again.")
        return

    if not estimate:
        await message.answer(
            "🤔 I couldn't recognise a meal in that. Try again with food names and portions.",
            reply_markup=get_food_diary_keyboard()
        )
        return

    await db.add_food_entry(
        user['id'],
        estimate['description'],
        estimate['calories'],
        estimate['protein'],
        estimate['carbs'],
        estimate['fat']
    )
    await db.log_event(user['id'], 'FOOD', f"{estimate['calories']} kcal")
    logger.info(f"🍽 Пользователь {user['id']} записал блюдо: {estimate['calories']} kcal")

    await answer_markdown(
        message,
        f"✅ Logged: {estimate['description']}: {estimate['calories']} kcal\n\n"
        f"{await today_summary(user, db)}",
        reply_markup=get_food_diary_keyboard()
    )
