"""
Модуль обработчиков команд и сообщений бота.

Порядок в ROUTERS важен: кнопки меню и команды должны срабатывать
раньше обработчиков ожидаемого ввода, а свободный чат - последним.
"""

from . import (
    errors,
    admin,
    start,
    menu,
    settings,
    referral,
    detox,
    food,
    onboarding,
    symptoms,
    analysis,
    chat,
)

ROUTERS = [
    errors.router,
    admin.router,
    start.router,
    menu.router,
    settings.router,
    referral.router,
    detox.router,
    food.router,
    onboarding.router,
    symptoms.router,
    analysis.router,
    chat.router,
]

__all__ = [
    'ROUTERS',
    'errors',
    'admin',
    'start',
    'menu',
    'settings',
    'referral',
    'detox',
    'food',
    'onboarding',
    'symptoms',
    'analysis',
    'chat',
]
