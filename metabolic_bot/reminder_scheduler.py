"""
Reminder Scheduler - ежедневные напоминания пользователям.

Включает:
- Напоминание о задачах детокс-дня (утром по локальному времени)
- Напоминание заполнить дневник питания (вечером, если за день пусто)
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Set, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramForbiddenError

from metabolic_bot.config import BotConfig
from metabolic_bot.db import Database
from metabolic_bot.keyboards import get_detox_keyboard, get_food_diary_keyboard
from metabolic_bot.utils.timezone import local_now, local_day_start_utc
from metabolic_center import detox as programme

logger = logging.getLogger(__name__)

KIND_DETOX = 'detox'
KIND_FOOD = 'food'


class ReminderScheduler:
    """
    Планировщик напоминаний.

    Раз в CHECK_INTERVAL проверяет всех пользователей с включёнными
    напоминаниями и отправляет те, у которых наступил нужный локальный час.
    Каждое напоминание уходит не чаще раза в локальные сутки.
    """

    # Пауза между отправками (лимиты Telegram)
    SEND_DELAY = 0.1

    def __init__(
        self,
        bot: Bot,
        db: Database,
        detox_hour: int = BotConfig.DETOX_REMINDER_HOUR,
        food_hour: int = BotConfig.FOOD_REMINDER_HOUR,
        check_interval: int = BotConfig.REMINDER_CHECK_INTERVAL
    ):
        self.bot = bot
        self.db = db
        self.detox_hour = detox_hour
        self.food_hour = food_hour
        self.check_interval = check_interval
        self._running = False
        # (тип, user_id, локальная дата)
        self._sent: Set[Tuple[str, int, str]] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self):
        """Запуск планировщика."""
        if self._running:
            return

        self._running = True
        logger.info("📅 Reminder Scheduler запущен")

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"❌ Ошибка в планировщике: {e}", exc_info=True)

            await asyncio.sleep(self.check_interval)

    async def stop(self):
        """Остановка планировщика."""
        self._running = False
        logger.info("🛑 Reminder Scheduler остановлен")

    @staticmethod
    def is_due(hour: int, tz_offset: int, now_utc: datetime) -> bool:
        """Совпадает ли локальный час пользователя с часом напоминания."""
        return local_now(tz_offset, now_utc).hour == hour

    @staticmethod
    def reminder_key(kind: str, user: Dict[str, Any], now_utc: datetime) -> Tuple[str, int, str]:
        local_date = local_now(user.get('tz_offset') or 0, now_utc).date().isoformat()
        return kind, user['id'], local_date

    async def run_once(self, now_utc: Optional[datetime] = None) -> Dict[str, int]:
        """
        Один проход по пользователям.

        Returns:
            Количество отправленных напоминаний по типам
        """
        now_utc = now_utc or datetime.utcnow()
        sent = {KIND_DETOX: 0, KIND_FOOD: 0}

        users = await self.db.get_reminder_candidates()
        detox_by_user = {row['user_id']: row for row in await self.db.get_active_detox()}

        for user in users:
            try:
                if await self._send_detox_reminder(user, detox_by_user.get(user['id']), now_utc):
                    sent[KIND_DETOX] += 1
                if await self._send_food_reminder(user, now_utc):
                    sent[KIND_FOOD] += 1
            except TelegramForbiddenError:
                # Пользователь заблокировал бота
                logger.info(f"🚫 Пользователь {user['id']} заблокировал бота, напоминания отключены")
                await self.db.update_user(user['id'], reminders_enabled=0)
            except Exception as e:
                logger.error(f"❌ Ошибка напоминания для {user['id']}: {e}", exc_info=True)

        self._prune(now_utc)

        if sent[KIND_DETOX] or sent[KIND_FOOD]:
            logger.info(f"🔔 Напоминания отправлены: детокс {sent[KIND_DETOX]}, дневник {sent[KIND_FOOD]}")
        return sent

    async def _send_detox_reminder(
        self,
        user: Dict[str, Any],
        detox: Optional[Dict[str, Any]],
        now_utc: datetime
    ) -> bool:
        if not detox or programme.is_finished(detox):
            return False

        if programme.days_since_start(detox, now_utc) >= programme.REMINDER_WINDOW_DAYS:
            return False

        if not self.is_due(self.detox_hour, user.get('tz_offset') or 0, now_utc):
            return False

        key = self.reminder_key(KIND_DETOX, user, now_utc)
        if key in self._sent:
            return False

        day = programme.get_day(detox.get('day') or 1)
        await self.bot.send_message(
            user['id'],
            f"☀️ Good morning! Your detox for today:\n\n{programme.format_day_tasks(day)}",
            parse_mode="Markdown",
            reply_markup=get_detox_keyboard(day=day.number)
        )
        self._sent.add(key)
        await asyncio.sleep(self.SEND_DELAY)
        return True

    async def _send_food_reminder(self, user: Dict[str, Any], now_utc: datetime) -> bool:
        tz_offset = user.get('tz_offset') or 0
        if not self.is_due(self.food_hour, tz_offset, now_utc):
            return False

        key = self.reminder_key(KIND_FOOD, user, now_utc)
        if key in self._sent:
            return False

        if await self.db.has_food_since(user['id'], local_day_start_utc(tz_offset, now_utc)):
            return False

        await self.bot.send_message(
            user['id'],
            "🍽 You haven't logged any meals today. Add what you ate to see your calories and macros.",
            reply_markup=get_food_diary_keyboard()
        )
        self._sent.add(key)
        await asyncio.sleep(self.SEND_DELAY)
        return True

    def _prune(self, now_utc: datetime):
        """Удаление ключей старше вчерашнего дня."""
        cutoff = (now_utc - timedelta(days=2)).date().isoformat()
        self._sent = {key for key in self._sent if key[2] >= cutoff}
