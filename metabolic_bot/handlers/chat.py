"""
Свободный чат о здоровье (обрабатывает весь остальной текст).
"""

import logging
from typing import Dict, Any, List

from aiogram import Router, F
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.utils.messages import send_long
from metabolic_bot.utils.paywall import ensure_quota
from metabolic_center import quota
from metabolic_center.ai_client import HealthAI
from metabolic_center.profile import profile_context
from metabolic_center.prompts import CHAT_PROMPT

logger = logging.getLogger(__name__)
router = Router()


def append_history(history: List[Dict[str, str]], role: str, content: str,
                   limit: int = BotConfig.CHAT_HISTORY_LIMIT) -> List[Dict[str, str]]:
    """Добавляет сообщение и оставляет последние limit сообщений."""
    return (list(history) + [{'role': role, 'content': content}])[-limit:]


@router.message(F.text)
async def health_chat(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI):
    text = message.text.strip()
    if not text:
        return

    if not await ensure_quota(message, user, quota.KIND_CHAT):
        return

    await db.increment_counter(user['id'], quota.COUNTER_FIELDS[quota.KIND_CHAT])
    await db.log_event(user['id'], 'CHAT', text[:100])

    data = await state.get_data()
    history = append_history(data.get('history', []), 'user', text)

    try:
        reply = await ai.chat(CHAT_PROMPT + profile_context(user), history)
    except Exception as e:
        logger.error(f"❌ Ошибка чата для {user['id']}: {e}", exc_info=True)
        await message.answer("❌ Error. Try again.")
        return

    await state.update_data(history=append_history(history, 'assistant', reply))
    await send_long(message, reply)
