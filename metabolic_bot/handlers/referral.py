"""
Реферальная программа: ссылка-приглашение и бонусные дни Pro.
"""

import logging
from typing import Dict, Any, Optional

from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.keyboards import get_referral_keyboard
from metabolic_bot.utils.messages import answer_markdown
from metabolic_center import quota
from metabolic_center.referral import generate_referral_code, build_referral_link

logger = logging.getLogger(__name__)
router = Router()

CODE_ATTEMPTS = 5


async def get_or_create_referral_code(db: Database, user: Dict[str, Any]) -> str:
    """Реферальный код пользователя; создаётся при первом запросе."""
    if user.get('referral_code'):
        return user['referral_code']

    for attempt in range(CODE_ATTEMPTS):
        code = generate_referral_code(user['id'], salt=str(attempt))
        if await db.set_referral_code(user['id'], code):
            user['referral_code'] = code
            logger.info(f"🎁 Создан реферальный код {code} для {user['id']}")
            return code

    raise RuntimeError(f"Could not allocate referral code for user {user['id']}")


async def get_bot_username(bot: Bot) -> str:
    if BotConfig.BOT_USERNAME:
        return BotConfig.BOT_USERNAME
    me = await bot.me()
    return me.username


async def process_referral(db: Database, bot: Bot, new_user: Dict[str, Any], code: str) -> bool:
    """
    Начисление бонуса пригласившему.

    Засчитывается только для новых пользователей, один раз,
    и не для собственной ссылки.

    Returns:
        True если бонус начислен
    """
    if not new_user.get('is_new'):
        logger.info(f"Реферальный код {code} проигнорирован: {new_user['id']} не новый пользователь")
        return False

    referrer = await db.get_user_by_referral(code)
    if not referrer or referrer['id'] == new_user['id']:
        logger.info(f"Реферальный код {code} не найден или собственный")
        return False

    if not await db.set_referred_by(new_user['id'], referrer['id']):
        return False

    days = BotConfig.REFERRAL_BONUS_DAYS
    expires = quota.grant_days(referrer, days)
    await db.update_user(referrer['id'], trial_expires=expires)
    await db.log_event(referrer['id'], 'REFERRAL', f"invited {new_user['id']}")
    logger.info(f"🎁 Пользователь {referrer['id']} получил {days} дн. Pro за приглашение {new_user['id']}")

    try:
        await bot.send_message(
            referrer['id'],
            f"🎉 A friend joined with your invite link!\n\n"
            f"⭐ +{days} days of Pro added "
            f"({quota.days_left(referrer)} day(s) left)."
        )
    except Exception as e:
        logger.warning(f"Не удалось уведомить пригласившего {referrer['id']}: {e}")

    return True


async def show_referral(message: Message, user: Dict[str, Any], db: Database, bot: Bot):
    """Экран приглашения друзей."""
    code = await get_or_create_referral_code(db, user)
    link = build_referral_link(await get_bot_username(bot), code)
    invited = await db.count_referrals(user['id'])

    text = (
        "🎁 *Invite friends, get Pro for free*\n\n"
        f"For every friend who joins with your link you get "
        f"*{BotConfig.REFERRAL_BONUS_DAYS} days of Pro*.\n\n"
        f"👥 Friends invited: {invited}\n\n"
        f"Your link:\n{link}"
    )
    await answer_markdown(message, text, reply_markup=get_referral_keyboard(link))


@router.message(Command("invite"))
async def cmd_invite(message: Message, state: FSMContext, user: Dict[str, Any], db: Database, bot: Bot):
    await state.set_state(None)
    await show_referral(message, user, db, bot)


@router.callback_query(F.data == "referral_show")
async def referral_show(callback: CallbackQuery, user: Dict[str, Any], db: Database, bot: Bot):
    await callback.answer()
    await show_referral(callback.message, user, db, bot)
