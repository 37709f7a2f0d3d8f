"""
Глобальный обработчик необработанных исключений.
"""

import logging

from aiogram import Router
from aiogram.types import ErrorEvent

from metabolic_center.monitoring import capture_exception

logger = logging.getLogger(__name__)
router = Router()


@router.errors()
async def on_error(event: ErrorEvent) -> bool:
    """Логирует исключение и отправляет его в Sentry."""
    update_id = event.update.update_id if event.update else None
    logger.error(f"❌ Необработанная ошибка (update {update_id}): {event.exception}", exc_info=event.exception)
    capture_exception(event.exception, tags={"component": "dispatcher"})
    return True
