"""
Анализ фото: анализы крови и медицинские документы.
"""

import logging
from typing import Dict, Any

from aiogram import Router, F, Bot
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from metabolic_bot.db import Database
from metabolic_bot.states import Awaiting
from metabolic_bot.utils.messages import answer_markdown, send_long
from metabolic_bot.utils.paywall import ensure_quota, analysis_usage_note
from metabolic_center import quota
from metabolic_center.ai_client import HealthAI
from metabolic_center.profile import profile_context
from metabolic_center.prompts import ANALYSIS_PROMPT, DOC_PROMPT

logger = logging.getLogger(__name__)
router = Router()

MODE_ANALYSIS = 'analysis'
MODE_DOCUMENT = 'document'


async def take_image_mode(state: FSMContext) -> str:
    """
    Режим анализа для пришедшего изображения.

    Сбрасывается только ожидание документа, шаги онбординга и другой
    ожидаемый ввод остаются как были.
    """
    if await state.get_state() == Awaiting.document.state:
        await state.set_state(None)
        return MODE_DOCUMENT
    return MODE_ANALYSIS


async def run_image_analysis(
    message: Message,
    user: Dict[str, Any],
    db: Database,
    ai: HealthAI,
    bot: Bot,
    file,
    mode: str,
    text: str,
    mime_type: str = "image/jpeg",
    log_suffix: str = ''
) -> bool:
    """
    Скачивание изображения, запрос к модели и списание анализа.

    Returns:
        True если анализ выполнен
    """
    prompt = DOC_PROMPT if mode == MODE_DOCUMENT else ANALYSIS_PROMPT

    try:
        downloaded = await bot.download(file)
        image_bytes = downloaded.read()

        response = await ai.analyze_image(
            prompt,
            image_bytes,
            f"{text}{profile_context(user)}",
            mime_type=mime_type
        )
    except Exception as e:
        logger.error(f"❌ Ошибка анализа изображения ({mode}) для {user['id']}: {e}", exc_info=True)
        return False

    count = await db.increment_counter(user['id'], quota.COUNTER_FIELDS[quota.KIND_ANALYSIS])
    await db.log_event(user['id'], 'ANALYSIS', f"#{count}{log_suffix}")
    logger.info(f"🔬 Анализ #{count} ({mode}) для пользователя {user['id']}")

    await send_long(message, response)

    note = analysis_usage_note(user, count)
    if note:
        await answer_markdown(message, note)
    return True


@router.message(F.photo)
async def handle_photo(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI, bot: Bot):
    if not await ensure_quota(message, user, quota.KIND_ANALYSIS):
        return

    mode = await take_image_mode(state)

    await message.answer("📄 Interpreting..." if mode == MODE_DOCUMENT else "🔬 Analyzing... (30-60 sec)")

    done = await run_image_analysis(
        message, user, db, ai, bot,
        file=message.photo[-1],
        mode=mode,
        text=message.caption or "Analyze this.",
        log_suffix=" (document)" if mode == MODE_DOCUMENT else ''
    )
    if not done:
        await message.answer("❌ Error. Try again or send a clearer photo.")


@router.message(F.document)
async def handle_document(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, ai: HealthAI, bot: Bot):
    """Изображение, отправленное файлом; остальные форматы не поддерживаются."""
    document = message.document
    if not (document.mime_type or '').startswith('image/'):
        await message.answer("📄 Send medical documents as photos (JPG/PNG).")
        return

    if not await ensure_quota(message, user, quota.KIND_ANALYSIS):
        return

    mode = await take_image_mode(state)

    await message.answer("🔬 Analyzing...")

    done = await run_image_analysis(
        message, user, db, ai, bot,
        file=document,
        mode=mode,
        text=message.caption or "Analyze.",
        mime_type=document.mime_type,
        log_suffix=" (doc)"
    )
    if not done:
        await message.answer("❌ Error. Send as photo instead.")
