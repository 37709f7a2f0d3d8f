"""
Unit тесты для Rate Limiting middleware.
"""

import time
import pytest
from unittest.mock import AsyncMock, MagicMock

from aiogram.types import Message

from metabolic_bot.middlewares.rate_limiting import RateLimitMiddleware


@pytest.fixture
def limiter():
    return RateLimitMiddleware(limit=3, period=60, block_duration=120, exempt_user_ids=[999])


@pytest.mark.unit
class TestCheck:
    """Тесты скользящего окна."""

    def test_within_limit(self, limiter):
        assert [limiter.check(1, t) for t in (0, 1, 2)] == [0, 0, 0]

    def test_block_after_limit(self, limiter):
        for t in (0, 1, 2):
            limiter.check(1, t)

        assert limiter.check(1, 3) == 120
        assert limiter.check(1, 10) == 113

    def test_unblock_after_duration(self, limiter):
        for t in (0, 1, 2, 3):
            limiter.check(1, t)

        assert limiter.check(1, 124) == 0
        assert 1 not in limiter.blocked_until

    def test_window_slides(self, limiter):
        for t in (0, 1, 2):
            limiter.check(1, t)
        assert limiter.check(1, 61) == 0

    def test_users_are_independent(self, limiter):
        for t in (0, 1, 2):
            limiter.check(1, t)
        assert limiter.check(2, 3) == 0

    def test_exempt_user(self, limiter):
        assert all(limiter.check(999, t) == 0 for t in range(10))

    def test_stats(self, limiter):
        limiter.check(1)
        stats = limiter.get_stats()
        assert stats['active_users'] == 1
        assert stats['limit'] == 3


@pytest.mark.unit
class TestMiddleware:

    @pytest.mark.asyncio
    async def test_passes_allowed_request(self, limiter):
        handler = AsyncMock(return_value="handled")
        event = MagicMock(spec=Message)
        data = {'event_from_user': MagicMock(id=1)}

        assert await limiter(handler, event, data) == "handled"

    @pytest.mark.asyncio
    async def test_blocked_request_warned(self, limiter):
        handler = AsyncMock()
        event = MagicMock(spec=Message)
        event.answer = AsyncMock()
        data = {'event_from_user': MagicMock(id=1)}
        limiter.blocked_until[1] = time.time() + 100

        assert await limiter(handler, event, data) is None
        handler.assert_not_awaited()
        event.answer.assert_awaited_once()
