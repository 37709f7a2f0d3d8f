"""
Трекер симптомов: запись и анализ паттернов.
"""

import logging
from typing import Dict, Any

from aiogram import Router, F
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.db import Database
from metabolic_bot.states import Awaiting
from metabolic_bot.utils.messages import send_long
from metabolic_bot.utils.paywall import ensure_quota
from metabolic_center import quota
from metabolic_center.ai_client import HealthAI
from metabolic_center.profile import profile_context
from metabolic_center.prompts import SYMPTOM_PROMPT

logger = logging.getLogger(__name__)
router = Router()

SYMPTOM_MAX_TOKENS = 2000


def build_symptom_request(user: Dict[str, Any], history, latest: str) -> str:
    """Запрос к модели: профиль, история симптомов и последняя запись."""
    lines = "\n".join(f"{s['created_at']}: {s['text']}" for s in history)
    return f"{profile_context(user)}\n\nSymptom history:\n{lines}\n\nLatest: {latest}"


@router.message(Awaiting.symptoms, F.text)
async def track_symptoms(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI):
    await state.set_state(None)

    if not await ensure_quota(message, user, quota.KIND_CHAT):
        return

    text = message.text.strip()
    await db.increment_counter(user['id'], quota.COUNTER_FIELDS[quota.KIND_CHAT])
    await db.add_symptom(user['id'], text)
    await db.log_event(user['id'], 'SYMPTOM', text[:100])
    await message.answer("🔍 Analyzing symptoms...")

    try:
        history = await db.get_symptoms(user['id'])
        response = await ai.complete(
            SYMPTOM_PROMPT,
            build_symptom_request(user, history, text),
            max_tokens=SYMPTOM_MAX_TOKENS
        )
        await send_long(message, response)
    except Exception as e:
        logger.error(f"❌ Ошибка анализа симптомов для {user['id']}: {e}", exc_info=True)
        await message.answer("❌ Error. Try again.")
