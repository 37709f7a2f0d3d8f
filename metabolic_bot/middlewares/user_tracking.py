"""
User Middleware.

Гарантирует наличие пользователя в БД для каждого апдейта,
обновляет last_active и передаёт строку пользователя в handler как `user`.
"""

import logging
from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, User

from metabolic_center.monitoring import user_scope

logger = logging.getLogger(__name__)


class UserMiddleware(BaseMiddleware):
    """
    Загружает (или создаёт) пользователя.

    Ожидает экземпляр Database в data['db'] (передаётся в Dispatcher).
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        tg_user: User = data.get('event_from_user')
        db = data.get('db')

        if tg_user is None or db is None or tg_user.is_bot:
            return await handler(event, data)

        data['user'] = await db.ensure_user(tg_user.id, tg_user.username, tg_user.first_name)

        with user_scope(tg_user.id, tg_user.username):
            return await handler(event, data)
