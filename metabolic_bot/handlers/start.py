"""
Обработчики команд /start и /help.
"""

import asyncio
import logging
from typing import Dict, Any

from aiogram import Router, Bot
from aiogram.filters import CommandStart, Command, CommandObject
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.keyboards import get_main_menu_keyboard, get_gender_keyboard
from metabolic_bot.states import Onboarding
from metabolic_bot.utils.messages import answer_markdown
from metabolic_bot.handlers.referral import process_referral
from metabolic_center.referral import parse_referral_payload

logger = logging.getLogger(__name__)
router = Router()

# Пауза между приветствием и первым вопросом онбординга
ONBOARDING_DELAY = 1.0


def welcome_text() -> str:
    return (
        "🧬 *Welcome to Metabolic Center*\n\n"
        "Your AI Metabolic Intelligence assistant.\n\n"
        "🔬 *Analyze Blood Tests*: full metabolic report from a photo\n"
        "🥗 *Meal Plan*: personalized nutrition\n"
        "💊 *Supplement Protocol*: evidence-based stack\n"
        "📋 *Track Symptoms*: detect patterns\n"
        "📄 *Interpret Documents*: explain any medical doc\n"
        "💬 *Health Chat*: ask anything\n"
        "🍽 *Food Diary*: log meals, get calories and macros\n"
        "🧪 *7-Day Detox*: a guided daily programme\n\n"
        f"📸 *{BotConfig.FREE_ANALYSIS_LIMIT} free analyses + "
        f"{BotConfig.FREE_CHAT_LIMIT} free chats to start!*"
    )


HELP_TEXT = (
    "🧬 *Metabolic Center: commands*\n\n"
    "/start - restart and set up your profile\n"
    "/profile - your profile and usage\n"
    "/food - today's food diary\n"
    "/detox - 7-day detox programme\n"
    "/invite - invite friends, earn free Pro days\n"
    "/trial - activate a free Pro trial\n"
    "/timezone - set your time zone for reminders\n"
    "/reminders on|off - daily reminders\n"
    "/help - this message\n\n"
    "Or just send a photo of your blood test, or type a health question."
)


@router.message(CommandStart())
async def cmd_start(
    message: Message,
    command: CommandObject,
    state: FSMContext,
    user: Dict[str, Any],
    db: Database,
    bot: Bot
):
    """
    Обработчик команды /start.

    Сбрасывает диалог, обрабатывает реферальную ссылку (только для новых
    пользователей) и запускает онбординг профиля.
    """
    current_state = await state.get_state()
    if current_state:
        logger.info(f"Пользователь {user['id']} вызвал /start из состояния {current_state}")

    await state.clear()

    await db.log_event(
        user['id'], 'START',
        f"@{message.from_user.username or ''} {message.from_user.first_name or ''}"
    )

    referral_code = parse_referral_payload(command.args)
    if referral_code:
        logger.info(f"🎁 Реферальный код {referral_code} от пользователя {user['id']}")
        await process_referral(db, bot, user, referral_code)

    await answer_markdown(message, welcome_text(), reply_markup=get_main_menu_keyboard())

    await asyncio.sleep(ONBOARDING_DELAY)
    await state.set_state(Onboarding.gender)
    await message.answer(
        "Let me set up your profile.\n\n👤 Biological sex?",
        reply_markup=get_gender_keyboard()
    )


@router.message(Command("help"))
async def cmd_help(message: Message):
    await answer_markdown(message, HELP_TEXT, reply_markup=get_main_menu_keyboard())
