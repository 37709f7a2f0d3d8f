"""
Кнопки главного меню.

Кнопки срабатывают в любом состоянии FSM: нажатие отменяет
незавершённый ввод (симптомы, документ, блюдо, часовой пояс).
"""

import logging
from typing import Dict, Any

from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.keyboards import (
    BTN_ANALYZE, BTN_MEAL_PLAN, BTN_SUPPLEMENTS, BTN_SYMPTOMS, BTN_DOCUMENT,
    BTN_CHAT, BTN_FOOD, BTN_DETOX, BTN_PROFILE, BTN_INVITE, BTN_UPGRADE,
    get_upgrade_keyboard,
)
from metabolic_bot.states import Awaiting
from metabolic_bot.utils.messages import answer_markdown, send_long
from metabolic_bot.utils.paywall import ensure_quota, pro_pitch_message
from metabolic_bot.utils.timezone import format_tz_offset
from metabolic_bot.handlers.food import show_food_diary
from metabolic_bot.handlers.detox import show_detox
from metabolic_bot.handlers.referral import show_referral
from metabolic_center import quota
from metabolic_center.ai_client import HealthAI
from metabolic_center.profile import profile_context
from metabolic_center.prompts import MEAL_PLAN_PROMPT, SUPPLEMENT_PROMPT

logger = logging.getLogger(__name__)
router = Router()

ERROR_MESSAGE = "❌ Error. Try again."


async def reset_pending_input(state: FSMContext) -> None:
    """Отмена ожидаемого ввода без потери истории чата."""
    current_state = await state.get_state()
    if current_state:
        logger.debug(f"Сброс состояния {current_state}")
        await state.set_state(None)


def format_profile(user: Dict[str, Any]) -> str:
    """Текст карточки профиля."""
    pro = quota.has_pro(user)
    unlimited = '∞'

    lines = [
        "👤 *Your Profile*",
        f"Sex: {user.get('gender') or 'Not set'}",
    ]

    status = user.get('pregnancy_status')
    if status and status != 'not pregnant':
        lines.append(f"Status: {status}")

    lines += [
        f"Age: {user.get('age') or 'Not set'}",
        f"Goal: {user.get('goal') or 'Not set'}",
        f"Time zone: {format_tz_offset(user.get('tz_offset') or 0)}",
        "",
        "📊 *Usage*",
        f"Analyses: {user.get('analysis_count') or 0}/"
        f"{unlimited if pro else BotConfig.FREE_ANALYSIS_LIMIT}",
        f"Chats: {user.get('chat_count') or 0}/"
        f"{unlimited if pro else BotConfig.FREE_CHAT_LIMIT}",
        "",
    ]

    if user.get('is_pro'):
        lines.append("⭐ *Pro Member*")
    elif quota.trial_active(user):
        lines.append(f"⭐ *Pro trial*: {quota.days_left(user)} day(s) left")
    else:
        lines.append(f"[Upgrade to Pro]({BotConfig.CHECKOUT_URL})")

    return "\n".join(lines)


async def _generate(
    message: Message,
    user: Dict[str, Any],
    db: Database,
    ai: HealthAI,
    event: str,
    progress_text: str,
    system_prompt: str,
    request: str
):
    """Общий сценарий для плана питания и протокола добавок."""
    if not await ensure_quota(message, user, quota.KIND_CHAT):
        return

    await db.increment_counter(user['id'], quota.COUNTER_FIELDS[quota.KIND_CHAT])
    await db.log_event(user['id'], event)
    await message.answer(progress_text)

    try:
        response = await ai.complete(system_prompt, request + profile_context(user, extended=True))
        await send_long(message, response)
    except Exception as e:
        logger.error(f"❌ Ошибка генерации {event} для {user['id']}: {e}", exc_info=True)
        await message.answer(ERROR_MESSAGE)


@router.message(F.text == BTN_ANALYZE)
async def menu_analyze(message: Message, state: FSMContext):
    await reset_pending_input(state)
    await message.answer("📸 Send a photo of your blood test results.")


@router.message(F.text == BTN_MEAL_PLAN)
async def menu_meal_plan(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI):
    await reset_pending_input(state)
    await _generate(
        message, user, db, ai,
        event='MEAL_PLAN',
        progress_text="🥗 Generating meal plan...",
        system_prompt=MEAL_PLAN_PROMPT,
        request="Meal plan."
    )


@router.message(F.text == BTN_SUPPLEMENTS)
async def menu_supplements(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI):
    await reset_pending_input(state)
    await _generate(
        message, user, db, ai,
        event='SUPPLEMENT',
        progress_text="💊 Building protocol...",
        system_prompt=SUPPLEMENT_PROMPT,
        request="Supplements."
    )


@router.message(F.text == BTN_SYMPTOMS)
async def menu_symptoms(message: Message, state: FSMContext):
    await state.set_state(Awaiting.symptoms)
    await message.answer("📋 Describe your symptoms:")


@router.message(F.text == BTN_DOCUMENT)
async def menu_document(message: Message, state: FSMContext):
    await state.set_state(Awaiting.document)
    await message.answer("📄 Send a photo of your medical document.")


@router.message(F.text == BTN_CHAT)
async def menu_chat(message: Message, state: FSMContext):
    await reset_pending_input(state)
    await message.answer("💬 Ask me anything about health!")


@router.message(F.text == BTN_FOOD)
async def menu_food(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    await reset_pending_input(state)
    await show_food_diary(message, user, db)


@router.message(F.text == BTN_DETOX)
async def menu_detox(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    await reset_pending_input(state)
    await show_detox(message, user, db)


@router.message(F.text == BTN_INVITE)
async def menu_invite(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, bot: Bot):
    await reset_pending_input(state)
    await show_referral(message, user, db, bot)


@router.message(Command("profile"))
@router.message(F.text == BTN_PROFILE)
async def menu_profile(message: Message, state: FSMContext, user: Dict[str, Any]):
    await reset_pending_input(state)
    await answer_markdown(message, format_profile(user))


@router.message(F.text == BTN_UPGRADE)
async def menu_upgrade(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    await reset_pending_input(state)
    await db.log_event(user['id'], 'UPGRADE_CLICK')
    await answer_markdown(
        message,
        pro_pitch_message(),
        reply_markup=get_upgrade_keyboard(BotConfig.CHECKOUT_URL)
    )
