"""
7-дневная детокс-программа.
"""

import logging
from typing import Dict, Any, Optional

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from metabolic_bot.db import Database
from metabolic_bot.keyboards import get_detox_keyboard
from metabolic_bot.utils.messages import answer_markdown
from metabolic_center import detox as programme

logger = logging.getLogger(__name__)
router = Router()

INTRO_TEXT = (
    "🧪 *7-Day Metabolic Detox*\n\n"
    "A short daily programme to reset blood sugar, gut and sleep.\n"
    "Each day brings 3 simple tasks. Mark the day done when you finish them, "
    "and I'll remind you every morning.\n\n"
    + "\n".join(f"{day.icon} Day {day.number}: {day.title}" for day in programme.DETOX_DAYS)
)

FINISHED_TEXT = (
    "🏆 *Detox complete!*\n\n"
    "You finished all 7 days. Keep the habits that worked best for you, "
    "and consider a follow-up blood test in 4-6 weeks to see the change."
)


def detox_view(detox: Optional[Dict[str, Any]]):
    """Текст и клавиатура экрана детокса."""
    if not detox:
        return INTRO_TEXT, get_detox_keyboard(started=False)

    finished = programme.is_finished(detox)
    return (
        programme.render_progress(detox),
        get_detox_keyboard(day=detox.get('day'), finished=finished)
    )


async def show_detox(message: Message, user: Dict[str, Any], db: Database):
    text, keyboard = detox_view(await db.get_detox(user['id']))
    await answer_markdown(message, text, reply_markup=keyboard)


@router.message(Command("detox"))
async def cmd_detox(message: Message, state: FSMContext, user: Dict[str, Any], db: Database):
    await state.set_state(None)
    await show_detox(message, user, db)


@router.callback_query(F.data.in_({"detox_start", "detox_restart"}))
async def detox_start(callback: CallbackQuery, user: Dict[str, Any], db: Database):
    await db.start_detox(user['id'])
    await db.log_event(user['id'], 'DETOX_START', callback.data)
    logger.info(f"🧪 Пользователь {user['id']} начал детокс ({callback.data})")

    await callback.answer("🚀 Day 1 starts now!")
    await show_detox(callback.message, user, db)


@router.callback_query(F.data == "detox_done")
async def detox_done(callback: CallbackQuery, user: Dict[str, Any], db: Database):
    detox = await db.get_detox(user['id'])
    if not detox:
        await callback.answer("Start the programme first.", show_alert=True)
        return

    if programme.is_finished(detox):
        await callback.answer("Programme already complete 🏆")
        return

    day, completed, finished = programme.complete_current_day(detox)
    await db.update_detox(user['id'], day, completed)

    if finished:
        await db.log_event(user['id'], 'DETOX_DONE')
        logger.info(f"🏆 Пользователь {user['id']} завершил детокс")
        await callback.answer("🏆")
        await answer_markdown(callback.message, FINISHED_TEXT, reply_markup=get_detox_keyboard(finished=True))
        return

    await callback.answer(f"✅ Day {detox['day']} done!")
    await show_detox(callback.message, user, db)
