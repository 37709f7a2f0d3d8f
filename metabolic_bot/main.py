"""
Главный файл Telegram бота Metabolic Center.
"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from metabolic_bot.config import BotConfig
from metabolic_bot.db import get_database
from metabolic_bot.handlers import ROUTERS
from metabolic_bot.middlewares import RateLimitMiddleware, UserMiddleware
from metabolic_bot.reminder_scheduler import ReminderScheduler
from metabolic_bot.health_check import start_health_check_server, update_health_status
from metabolic_bot.env_validator import EnvValidator
from metabolic_bot.logger import auto_setup_logging
from metabolic_center.ai_client import HealthAI
from metabolic_center.monitoring import init_sentry, capture_exception, flush_events

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand(command="start", description="🏠 Restart and set up profile"),
    BotCommand(command="profile", description="👤 My profile"),
    BotCommand(command="food", description="🍽 Food diary"),
    BotCommand(command="detox", description="🧪 7-day detox"),
    BotCommand(command="invite", description="🎁 Invite friends"),
    BotCommand(command="trial", description="⭐ Free Pro trial"),
    BotCommand(command="timezone", description="🕒 Time zone"),
    BotCommand(command="reminders", description="🔔 Daily reminders"),
    BotCommand(command="help", description="❓ Help"),
]


def create_dispatcher(db, ai: HealthAI) -> Dispatcher:
    """
    Диспетчер с middleware и роутерами.

    db и ai передаются в обработчики через workflow data.
    """
    dp = Dispatcher(storage=MemoryStorage(), db=db, ai=ai)

    # Rate limiting раньше трекинга, чтобы спам не писал в БД
    rate_limiter = RateLimitMiddleware(
        limit=BotConfig.RATE_LIMIT,
        period=BotConfig.RATE_LIMIT_PERIOD,
        exempt_user_ids=[BotConfig.ADMIN_USER_ID] if BotConfig.ADMIN_USER_ID else None
    )
    dp.message.middleware(rate_limiter)
    dp.callback_query.middleware(rate_limiter)

    user_middleware = UserMiddleware()
    dp.message.middleware(user_middleware)
    dp.callback_query.middleware(user_middleware)

    for router in ROUTERS:
        dp.include_router(router)

    return dp


async def main():
    """Главная функция запуска бота."""
    auto_setup_logging()

    logger.info("🔍 Проверка переменных окружения...")
    EnvValidator.validate_and_exit_if_invalid(strict=False)

    logger.info(f"🏥 Запуск health check сервера на порту {BotConfig.HEALTH_CHECK_PORT}...")
    health_check_runner = await start_health_check_server(
        port=BotConfig.HEALTH_CHECK_PORT,
        db_path=BotConfig.DB_PATH
    )

    if init_sentry(environment="production", traces_sample_rate=0.1):
        update_health_status("sentry", "ok")
    else:
        logger.info("ℹ️  Sentry мониторинг отключен (SENTRY_DSN не указан)")
        update_health_status("sentry", "ok: disabled")

    try:
        BotConfig.validate()
        logger.info("✅ Конфигурация валидна")
        update_health_status("config", "ok")
    except ValueError as e:
        logger.error(f"❌ Ошибка конфигурации: {e}")
        update_health_status("config", f"error: {e}")
        capture_exception(e, level="fatal", tags={"component": "config"})
        await health_check_runner.cleanup()
        return

    logger.info("🗄️  Инициализация базы данных...")
    try:
        db = await get_database(BotConfig.DB_PATH)
        update_health_status("database", "ok")
    except Exception as e:
        logger.error(f"❌ Ошибка инициализации БД: {e}")
        update_health_status("database", f"error: {e}")
        await health_check_runner.cleanup()
        raise

    ai = HealthAI(api_key=BotConfig.OPENAI_API_KEY, model=BotConfig.OPENAI_MODEL)
    bot = Bot(token=BotConfig.BOT_TOKEN)
    dp = create_dispatcher(db, ai)

    scheduler = None
    scheduler_task = None
    if BotConfig.REMINDERS_ENABLED:
        scheduler = ReminderScheduler(bot, db)
        scheduler_task = asyncio.create_task(scheduler.start())
        update_health_status("reminders", "ok")
    else:
        logger.info("ℹ️  Напоминания отключены в конфигурации")
        update_health_status("reminders", "ok: disabled")

    try:
        await bot.delete_webhook(drop_pending_updates=True)
        await bot.set_my_commands(BOT_COMMANDS)
        logger.info("✅ Команды бота установлены")

        logger.info("🧬 Metabolic Center Bot запущен!")
        update_health_status("bot", "ok: running")
        await dp.start_polling(bot)

    except Exception as e:
        logger.error(f"❌ Ошибка при запуске бота: {e}", exc_info=True)
        update_health_status("bot", f"error: {e}")
        capture_exception(e, level="fatal", tags={"component": "main"})
    finally:
        if scheduler:
            await scheduler.stop()
        if scheduler_task and not scheduler_task.done():
            scheduler_task.cancel()
            try:
                await scheduler_task
            except asyncio.CancelledError:
                pass

        await bot.session.close()

        logger.info("🛑 Остановка health check сервера...")
        await health_check_runner.cleanup()

        flush_events(timeout=2)


def run():
    """Точка входа консольного скрипта."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Бот остановлен пользователем")


if __name__ == "__main__":
    run()
