"""
Unit тесты для дневника питания.
"""

import json

import pytest

from metabolic_center.food import parse_food_estimate, summarize_entries, format_day_summary


@pytest.mark.unit
class TestParseFoodEstimate:
    """Тесты разбора ответа модели."""

    def test_plain_json(self):
        estimate = parse_food_estimate(
            '{"description": "Two eggs", "calories": 156, "protein": 12.6, "carbs": 1.1, "fat": 10.6}'
        )
        assert estimate == {
            'description': 'Two eggs',
            'calories': 156,
            'protein': 12.6,
            'carbs': 1.1,
            'fat': 10.6,
        }

    def test_fenced_json_with_text(self):
        text = 'Here you go:\n```json\n{"description": "Toast", "calories": "120 kcal", "protein": "4 g"}\n```'
        estimate = parse_food_estimate(text)
        assert estimate['calories'] == 120
        assert estimate['protein'] == 4.0
        assert estimate['fat'] == 0.0

    def test_fallback_description(self):
        estimate = parse_food_estimate('{"calories": 300}', fallback_description='pasta')
        assert estimate['description'] == 'pasta'

    def test_zero_calories_is_not_food(self):
        assert parse_food_estimate('{"description": "rock", "calories": 0}') is None

    @pytest.mark.parametrize("calories", [-120, "-120 kcal"])
    def test_negative_calories_is_not_food(self, calories):
        text = json.dumps({"description": "water", "calories": calories})
        assert parse_food_estimate(text) is None

    def test_negative_macros_clamped(self):
        estimate = parse_food_estimate(
            '{"description": "Salad", "calories": 90, "protein": -2, "carbs": "-3 g", "fat": "5-7 g"}'
        )
        assert estimate['protein'] == 0.0
        assert estimate['carbs'] == 0.0
        assert estimate['fat'] == 5.0

    @pytest.mark.parametrize("text", ["", "no json here", "{broken json", "[1, 2]"])
    def test_unparseable(self, text):
        assert parse_food_estimate(text) is None


@pytest.mark.unit
class TestDaySummary:
    """Тесты сводки за день."""

    @pytest.fixture
    def entries(self):
        return [
            {'description': 'Oatmeal', 'calories': 300, 'protein': 10, 'carbs': 50.5, 'fat': 6},
            {'description': 'Chicken salad', 'calories': 450, 'protein': 35.2, 'carbs': 12, 'fat': 20.1},
        ]

    def test_summarize(self, entries):
        assert summarize_entries(entries) == {
            'calories': 750,
            'protein': 45.2,
            'carbs': 62.5,
            'fat': 26.1,
        }

    def test_empty_day(self):
        assert "Nothing logged today yet." in format_day_summary([])

    def test_day_summary(self, entries):
        text = format_day_summary(entries)
        assert "Oatmeal: 300 kcal" in text
        assert "Chicken salad: 450 kcal" in text
        assert "*Total:* 750 kcal" in text
