"""
Paywall: проверка бесплатных лимитов и апселл Pro.
"""

import logging
from typing import Dict, Any

from aiogram.types import Message

from metabolic_bot.config import BotConfig
from metabolic_bot.keyboards import get_upgrade_keyboard
from metabolic_bot.utils.messages import answer_markdown
from metabolic_center import quota

logger = logging.getLogger(__name__)


def upgrade_message() -> str:
    """Сообщение об исчерпании бесплатного лимита."""
    return (
        "🔒 *Free limit reached*\n\n"
        "Upgrade to Metabolic Center Pro:\n\n"
        "✦ Unlimited blood test analyses\n"
        "✦ Unlimited AI health chat\n"
        "✦ Personalized meal plans & supplement protocols\n"
        "✦ Symptom tracking & pattern detection\n"
        "✦ Medical document interpretation\n\n"
        f"💰 *Founding price: {BotConfig.PRO_PRICE}* (locked forever)\n"
        f"_Future price: {BotConfig.FUTURE_PRICE}_\n\n"
        f"👉 [Upgrade Now]({BotConfig.CHECKOUT_URL})"
    )


def pro_pitch_message() -> str:
    """Текст кнопки меню "Upgrade to Pro"."""
    return (
        f"⭐ *Metabolic Center Pro: {BotConfig.PRO_PRICE}*\n\n"
        "✦ Unlimited everything\n"
        "✦ Priority AI processing\n\n"
        "_Founding price locked forever._\n\n"
        f"👉 [Subscribe Now]({BotConfig.CHECKOUT_URL})"
    )


def can_use(user: Dict[str, Any], kind: str) -> bool:
    return quota.can_use(
        user, kind,
        analysis_limit=BotConfig.FREE_ANALYSIS_LIMIT,
        chat_limit=BotConfig.FREE_CHAT_LIMIT
    )


def remaining(user: Dict[str, Any], kind: str):
    return quota.remaining(
        user, kind,
        analysis_limit=BotConfig.FREE_ANALYSIS_LIMIT,
        chat_limit=BotConfig.FREE_CHAT_LIMIT
    )


async def ensure_quota(message: Message, user: Dict[str, Any], kind: str) -> bool:
    """
    Проверка лимита с отправкой апселла.

    Returns:
        True если можно продолжать
    """
    if can_use(user, kind):
        return True

    logger.info(f"💳 Лимит '{kind}' исчерпан у пользователя {user['id']}")
    await answer_markdown(message, upgrade_message(), reply_markup=get_upgrade_keyboard(BotConfig.CHECKOUT_URL))
    return False


def analysis_usage_note(user: Dict[str, Any], analysis_count: int) -> str:
    """
    Подсказка об остатке бесплатных анализов после анализа.

    Args:
        user: Пользователь (для проверки Pro)
        analysis_count: Значение счётчика после списания

    Returns:
        Пустая строка для Pro
    """
    if quota.has_pro(user):
        return ''

    left = BotConfig.FREE_ANALYSIS_LIMIT - analysis_count
    if left > 0:
        return f"📊 Free analyses remaining: {left}/{BotConfig.FREE_ANALYSIS_LIMIT}"

    return f"📊 Last free analysis used.\n👉 [Upgrade: {BotConfig.PRO_PRICE}]({BotConfig.CHECKOUT_URL})"
