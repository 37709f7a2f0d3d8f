"""Middlewares для бота."""

from .rate_limiting import RateLimitMiddleware
from .user_tracking import UserMiddleware

__all__ = [
    'RateLimitMiddleware',
    'UserMiddleware',
]
