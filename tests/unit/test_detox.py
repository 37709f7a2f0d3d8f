"""
Unit тесты для 7-дневной детокс-программы.
"""

import pytest
from datetime import datetime

from metabolic_center import detox


@pytest.fixture
def started_detox():
    return {
        'user_id': 1001,
        'day': 1,
        'started_at': '2024-03-01 08:00:00',
        'completed_days': '',
    }


@pytest.mark.unit
class TestDays:
    """Тесты контента программы."""

    def test_seven_days(self):
        assert len(detox.DETOX_DAYS) == detox.TOTAL_DAYS
        assert [d.number for d in detox.DETOX_DAYS] == list(range(1, 8))
        assert all(d.tasks for d in detox.DETOX_DAYS)

    def test_get_day_clamps(self):
        assert detox.get_day(0).number == 1
        assert detox.get_day(3).number == 3
        assert detox.get_day(42).number == 7

    def test_format_day_tasks(self):
        text = detox.format_day_tasks(detox.get_day(1))
        assert "*Day 1: Sugar Reset*" in text
        assert text.count("• ") == len(detox.get_day(1).tasks)


@pytest.mark.unit
class TestCompletedDays:
    """Тесты разбора выполненных дней."""

    def test_parse_drops_garbage_and_duplicates(self):
        assert detox.parse_completed("3,1,x,1,8, 2") == [1, 2, 3]

    def test_parse_empty(self):
        assert detox.parse_completed(None) == []
        assert detox.parse_completed('') == []

    def test_format_completed(self):
        assert detox.format_completed([3, 1, 3]) == '1,3'


@pytest.mark.unit
class TestProgress:
    """Тесты прогресса программы."""

    def test_complete_first_day(self, started_detox):
        assert detox.complete_current_day(started_detox) == (2, '1', False)

    def test_complete_same_day_twice_keeps_single_mark(self, started_detox):
        started_detox.update(day=2, completed_days='1,2')
        day, completed, finished = detox.complete_current_day(started_detox)
        assert completed == '1,2'
        assert day == 3
        assert not finished

    def test_complete_last_day_finishes(self, started_detox):
        started_detox.update(day=7, completed_days='1,2,3,4,5,6')
        day, completed, finished = detox.complete_current_day(started_detox)
        assert day == 7
        assert completed == '1,2,3,4,5,6,7'
        assert finished

    def test_finished_programme_unchanged(self, started_detox):
        started_detox.update(day=7, completed_days='1,2,3,4,5,6,7')
        assert detox.is_finished(started_detox)
        assert detox.complete_current_day(started_detox) == (7, '1,2,3,4,5,6,7', True)

    def test_is_finished_without_programme(self):
        assert not detox.is_finished(None)

    def test_days_since_start(self, started_detox):
        now = datetime(2024, 3, 3, 12, 0)
        assert detox.days_since_start(started_detox, now) == 2
        assert detox.scheduled_day(started_detox, now) == 3

    def test_scheduled_day_caps_at_seven(self, started_detox):
        assert detox.scheduled_day(started_detox, datetime(2024, 4, 1)) == 7

    def test_invalid_started_at(self, started_detox):
        started_detox['started_at'] = 'yesterday'
        assert detox.days_since_start(started_detox, datetime(2024, 3, 3)) == 0


@pytest.mark.unit
class TestRenderProgress:
    """Тесты текста прогресса."""

    def test_in_progress(self, started_detox):
        started_detox.update(day=2, completed_days='1')
        text = detox.render_progress(started_detox, now=datetime(2024, 3, 2, 9, 0))
        assert "✅1" in text
        assert "⬜2" in text
        assert "Completed: 1/7" in text
        assert "*Day 2: Whole Foods*" in text
        assert "behind" not in text

    def test_behind_schedule(self, started_detox):
        text = detox.render_progress(started_detox, now=datetime(2024, 3, 4, 9, 0))
        assert "3 day(s) behind" in text

    def test_finished(self, started_detox):
        started_detox.update(day=7, completed_days='1,2,3,4,5,6,7')
        text = detox.render_progress(started_detox)
        assert "Programme complete" in text
        assert "Completed: 7/7" in text
