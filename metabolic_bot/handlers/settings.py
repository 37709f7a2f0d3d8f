"""
Настройки пользователя: часовой пояс, напоминания, пробный период.
"""

import logging
from typing import Dict, Any

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.states import Awaiting
from metabolic_bot.utils.timezone import parse_tz_offset, format_tz_offset
from metabolic_center import quota

logger = logging.getLogger(__name__)
router = Router()

REMINDER_SWITCHES = {'on': 1, 'off': 0}


@router.message(Command("timezone"))
async def cmd_timezone(message: Message, command: CommandObject, state: FSMContext,
                       user: Dict[str, Any], db: Database):
    """/timezone [+3] - показать или сразу установить смещение."""
    if command.args:
        await state.set_state(None)
        await _apply_timezone(message, command.args, user, db)
        return

    await state.set_state(Awaiting.timezone)
    await message.answer(
        f"🕒 Your time zone: {format_tz_offset(user.get('tz_offset') or 0)}\n\n"
        "Send your offset from UTC in whole hours, e.g. +3 or -5."
    )


@router.message(Awaiting.timezone, F.text)
async def enter_timezone(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    if await _apply_timezone(message, message.text, user, db):
        await state.set_state(None)


async def _apply_timezone(message: Message, text: str, user: Dict[str, Any], db: Database) -> bool:
    offset = parse_tz_offset(text)
    if offset is None:
        await message.answer("Send an offset like +3 or -5 (from -12 to +14).")
        return False

    await db.update_user(user['id'], tz_offset=offset)
    logger.info(f"🕒 Пользователь {user['id']} установил пояс {format_tz_offset(offset)}")
    await message.answer(f"✅ Time zone set: {format_tz_offset(offset)}")
    return True


@router.message(Command("reminders"))
async def cmd_reminders(message: Message, command: CommandObject, user: Dict[str, Any], db: Database):
    """/reminders [on|off]"""
    switch = (command.args or '').strip().lower()

    if switch not in REMINDER_SWITCHES:
        status = 'on' if user.get('reminders_enabled', 1) else 'off'
        await message.answer(
            f"🔔 Daily reminders are {status}.\n\n"
            "Use /reminders on or /reminders off."
        )
        return

    await db.update_user(user['id'], reminders_enabled=REMINDER_SWITCHES[switch])
    await message.answer(f"🔔 Daily reminders turned {switch}.")


@router.message(Command("trial"))
async def cmd_trial(message: Message, user: Dict[str, Any], db: Database):
    """Однократный пробный период Pro."""
    if user.get('is_pro'):
        await message.answer("⭐ You already have Pro.")
        return

    if user.get('trial_used'):
        await message.answer("Your free trial has already been used. Invite friends with /invite for more Pro days.")
        return

    expires = quota.grant_days(user, BotConfig.TRIAL_DAYS)
    await db.update_user(user['id'], trial_expires=expires, trial_used=1)
    await db.log_event(user['id'], 'TRIAL_START', f"{BotConfig.TRIAL_DAYS} days")
    logger.info(f"⭐ Пользователь {user['id']} активировал пробный период")

    await message.answer(
        f"⭐ Pro trial activated for {BotConfig.TRIAL_DAYS} days!\n\n"
        "Unlimited analyses and chats until it ends."
    )
