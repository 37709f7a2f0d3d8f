"""
Rate Limiting Middleware для защиты от спама.

Каждый запрос к боту может стоить вызова LLM, поэтому частоту
запросов от одного пользователя ограничиваем.
"""

import time
import logging
from typing import Dict, Any, Callable, Awaitable
from collections import defaultdict, deque

from aiogram import BaseMiddleware
from aiogram.types import Message, CallbackQuery, TelegramObject

from metabolic_center.monitoring import capture_message

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseMiddleware):
    """
    Ограничение частоты запросов (скользящее окно).

    При превышении лимита пользователь блокируется на block_duration секунд.
    """

    def __init__(
        self,
        limit: int = 20,
        period: int = 60,
        block_duration: int = 120,
        exempt_user_ids=None
    ):
        """
        Args:
            limit: Максимальное количество запросов за период
            period: Период в секундах
            block_duration: Время блокировки при превышении лимита (секунды)
            exempt_user_ids: ID без ограничений (администратор)
        """
        super().__init__()
        self.limit = limit
        self.period = period
        self.block_duration = block_duration
        self.exempt_user_ids = set(exempt_user_ids or [])

        # user_id -> timestamps запросов в окне
        self.requests: Dict[int, deque] = defaultdict(lambda: deque(maxlen=limit))

        # user_id -> время окончания блокировки
        self.blocked_until: Dict[int, float] = {}

        logger.info(
            f"✅ Rate Limiting: {limit} запросов/{period}сек, "
            f"блокировка {block_duration}сек"
        )

    def check(self, user_id: int, current_time: float = None) -> int:
        """
        Учёт запроса пользователя.

        Returns:
            0 если запрос разрешён, иначе оставшееся время блокировки в секундах
        """
        if user_id in self.exempt_user_ids:
            return 0

        current_time = time.time() if current_time is None else current_time

        unblock_time = self.blocked_until.get(user_id)
        if unblock_time is not None:
            if current_time < unblock_time:
                return max(1, int(unblock_time - current_time))
            del self.blocked_until[user_id]
            logger.info(f"✅ Rate limit: user {user_id} разблокирован")

        user_requests = self.requests[user_id]

        # Удаляем запросы за пределами окна
        cutoff_time = current_time - self.period
        while user_requests and user_requests[0] < cutoff_time:
            user_requests.popleft()

        if len(user_requests) >= self.limit:
            self.blocked_until[user_id] = current_time + self.block_duration
            logger.warning(
                f"🚨 Rate limit exceeded: user {user_id} "
                f"заблокирован на {self.block_duration}сек"
            )
            capture_message(
                f"Rate limit exceeded for user {user_id}",
                level="warning",
                tags={"component": "rate_limiting"}
            )
            return self.block_duration

        user_requests.append(current_time)
        return 0

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = data.get('event_from_user')
        if user is None:
            return await handler(event, data)

        remaining = self.check(user.id)
        if remaining:
            await self._send_rate_limit_warning(event, remaining)
            return None

        return await handler(event, data)

    async def _send_rate_limit_warning(self, event: TelegramObject, remaining_seconds: int):
        minutes, seconds = divmod(remaining_seconds, 60)
        time_str = f"{minutes} min {seconds} sec" if minutes else f"{seconds} sec"

        warning_text = (
            "⚠️ Too many requests.\n\n"
            f"Please wait {time_str} and try again."
        )

        try:
            if isinstance(event, Message):
                await event.answer(warning_text)
            elif isinstance(event, CallbackQuery):
                await event.answer(warning_text, show_alert=True)
        except Exception as e:
            logger.error(f"Ошибка отправки предупреждения: {e}")

    def get_stats(self) -> Dict[str, Any]:
        current_time = time.time()
        return {
            "active_users": sum(
                1 for requests in self.requests.values()
                if requests and requests[-1] > current_time - self.period
            ),
            "blocked_users": sum(
                1 for unblock_time in self.blocked_until.values()
                if unblock_time > current_time
            ),
            "limit": self.limit,
            "period": self.period,
        }
