"""
Health Check endpoint для мониторинга и Railway/Docker.

Поднимает простой HTTP сервер для проверки здоровья приложения.
"""

import logging
from datetime import datetime
from typing import Optional

import aiosqlite
from aiohttp import web

logger = logging.getLogger(__name__)

# Глобальные переменные для отслеживания состояния
_health_status = {
    "status": "starting",
    "started_at": datetime.utcnow().isoformat(),
    "checks": {}
}


async def check_database(db_path) -> str:
    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("SELECT 1")
        return "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return f"error: {e}"


async def health_check_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint: GET /health

    Returns:
        200 OK если все системы работают
        503 Service Unavailable если есть проблемы
    """
    db_path = request.app.get('db_path')
    if db_path is not None:
        _health_status["checks"]["database"] = await check_database(db_path)

    all_ok = all(
        check == "ok" or check.startswith("ok")
        for check in _health_status["checks"].values()
    )

    _health_status["status"] = "healthy" if all_ok else "degraded"
    _health_status["timestamp"] = datetime.utcnow().isoformat()

    return web.json_response(_health_status, status=200 if all_ok else 503)


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint: GET /ready
    """
    if _health_status["status"] in ["healthy", "degraded"]:
        return web.json_response({"ready": True}, status=200)
    return web.json_response({"ready": False}, status=503)


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"alive": True}, status=200)


def create_app(db_path=None) -> web.Application:
    app = web.Application()
    app['db_path'] = db_path

    app.router.add_get('/health', health_check_handler)
    app.router.add_get('/ready', readiness_handler)
    app.router.add_get('/live', liveness_handler)
    app.router.add_get('/', health_check_handler)

    return app


async def start_health_check_server(port: int = 8080, db_path=None) -> web.AppRunner:
    """
    Запуск health check HTTP сервера.

    Args:
        port: Порт для health check endpoint (default: 8080)
        db_path: Путь к SQLite базе для проверки соединения
    """
    runner = web.AppRunner(create_app(db_path))
    await runner.setup()

    site = web.TCPSite(runner, '0.0.0.0', port)
    await site.start()

    _health_status["status"] = "healthy"

    logger.info(f"✅ Health check server started on port {port}")
    logger.info(f"   GET http://0.0.0.0:{port}/health - Full health check")
    logger.info(f"   GET http://0.0.0.0:{port}/ready - Readiness probe")
    logger.info(f"   GET http://0.0.0.0:{port}/live - Liveness probe")

    return runner


def update_health_status(component: str, status: str):
    """
    Обновление статуса компонента.

    Args:
        component: Название компонента (database, bot, reminders)
        status: Статус ('ok', 'error: ...', 'degraded')
    """
    _health_status["checks"][component] = status
    logger.debug(f"Health status updated: {component} = {status}")


def get_health_status() -> dict:
    return _health_status


__all__ = [
    'create_app',
    'start_health_check_server',
    'update_health_status',
    'get_health_status',
]
