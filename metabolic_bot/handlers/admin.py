"""
Админ-команды: статистика и ручная выдача Pro.
"""

import logging
from typing import Dict, Any, Optional

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database

logger = logging.getLogger(__name__)
router = Router()


def format_stats(stats: Dict[str, Any]) -> str:
    """Текст отчёта /stats."""
    recent = "\n".join(
        f"• {u.get('gender') or '?'}, {u.get('age') or '?'}y, {u.get('goal') or '?'} - "
        f"🔬{u.get('analysis_count') or 0} 💬{u.get('chat_count') or 0} "
        f"({(u.get('joined_at') or '')[:10]})"
        for u in stats.get('recent_users', [])
    )

    return (
        "📊 Metabolic Center Stats\n\n"
        f"👥 Total users: {stats['total_users']}\n"
        f"⭐ Pro: {stats['pro_users']}\n"
        f"🔬 Analyses: {stats['total_analyses']}\n"
        f"💬 Chats: {stats['total_chats']}\n"
        f"🧪 Detox started: {stats['detox_started']}\n\n"
        f"📅 Today: {stats['today_users']} new users, {stats['today_activity']} actions\n\n"
        f"📋 Recent:\n{recent or 'No users yet'}"
    )


def _parse_user_id(command: CommandObject) -> Optional[int]:
    args = (command.args or '').strip()
    return int(args) if args.isdigit() else None


@router.message(Command("stats"))
async def cmd_stats(message: Message, db: Database):
    if not BotConfig.is_admin(message.from_user.id):
        return

    stats = await db.stats()
    await message.answer(format_stats(stats))


@router.message(Command("grant_pro", "revoke_pro"))
async def cmd_set_pro(message: Message, command: CommandObject, db: Database):
    """/grant_pro <user_id>, /revoke_pro <user_id>"""
    if not BotConfig.is_admin(message.from_user.id):
        return

    target_id = _parse_user_id(command)
    if target_id is None:
        await message.answer(f"Usage: /{command.command} <user_id>")
        return

    target = await db.get_user(target_id)
    if not target:
        await message.answer(f"❌ User {target_id} not found.")
        return

    is_pro = 1 if command.command == 'grant_pro' else 0
    await db.update_user(target_id, is_pro=is_pro)
    await db.log_event(target_id, 'PRO_GRANTED' if is_pro else 'PRO_REVOKED', f"by {message.from_user.id}")
    logger.info(f"⭐ Администратор {message.from_user.id}: is_pro={is_pro} для {target_id}")

    await message.answer(f"✅ User {target_id}: Pro {'enabled' if is_pro else 'disabled'}.")
