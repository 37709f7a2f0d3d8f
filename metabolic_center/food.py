"""
Дневник питания: разбор оценки блюда от LLM и сводка за день.
"""

import json
import logging
import re
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r'\{.*\}', re.DOTALL)
_NUMBER_RE = re.compile(r'-?\d+(?:[.,]\d+)?')

MACRO_FIELDS = ('protein', 'carbs', 'fat')


def _to_number(value: Any) -> float:
    if isinstance(value, (int, float)):
        return max(0.0, float(value))
    match = _NUMBER_RE.search(str(value or ''))
    if not match:
        return 0.0
    return max(0.0, float(match.group(0).replace(',', '.')))


def parse_food_estimate(text: str, fallback_description: str = '') -> Optional[Dict[str, Any]]:
    """
    Разбор JSON-ответа модели с оценкой блюда.

    Модель иногда оборачивает JSON в ```json ... ``` или добавляет текст,
    поэтому ищем первый объект {...} в ответе.

    Returns:
        {'description', 'calories', 'protein', 'carbs', 'fat'} или None,
        если ответ не разобран или это не еда (0 ккал)
    """
    if not text:
        return None

    match = _JSON_OBJECT_RE.search(text)
    if not match:
        logger.warning(f"Оценка блюда без JSON: {text[:100]}")
        return None

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Не удалось разобрать оценку блюда: {e}")
        return None

    if not isinstance(data, dict):
        return None

    calories = int(round(_to_number(data.get('calories'))))
    if calories <= 0:
        return None

    estimate = {
        'description': (str(data.get('description') or '').strip() or fallback_description)[:200],
        'calories': calories,
    }
    for macro in MACRO_FIELDS:
        estimate[macro] = round(_to_number(data.get(macro)), 1)

    return estimate


def summarize_entries(entries: List[Dict[str, Any]]) -> Dict[str, float]:
    """Сумма калорий и БЖУ по списку записей дневника."""
    totals = {'calories': 0, 'protein': 0.0, 'carbs': 0.0, 'fat': 0.0}
    for entry in entries:
        totals['calories'] += int(entry.get('calories') or 0)
        for macro in MACRO_FIELDS:
            totals[macro] += float(entry.get(macro) or 0)
    for macro in MACRO_FIELDS:
        totals[macro] = round(totals[macro], 1)
    return totals


def format_entry(entry: Dict[str, Any]) -> str:
    return (
        f"• {entry.get('description') or 'Meal'}: {int(entry.get('calories') or 0)} kcal "
        f"(P {float(entry.get('protein') or 0):g} / C {float(entry.get('carbs') or 0):g} / "
        f"F {float(entry.get('fat') or 0):g})"
    )


def format_day_summary(entries: List[Dict[str, Any]]) -> str:
    """Текст дневника за сегодня."""
    if not entries:
        return "🍽 *Food Diary*\n\nNothing logged today yet."

    totals = summarize_entries(entries)
    lines = ["🍽 *Food Diary: today*", ""]
    lines += [format_entry(e) for e in entries]
    lines += [
        "",
        f"*Total:* {totals['calories']} kcal",
        f"Protein {totals['protein']:g} g · Carbs {totals['carbs']:g} g · Fat {totals['fat']:g} g",
    ]
    return "\n".join(lines)
