"""
Профиль пациента: справочники онбординга и контекст для промптов.
"""

from typing import Dict, Any, Optional

GENDERS = {
    'gender_male': 'male',
    'gender_female': 'female',
}

PREGNANCY_STATUSES = {
    'preg_yes': 'pregnant',
    'preg_bf': 'breastfeeding',
    'preg_no': 'not pregnant',
}

GOALS = {
    'goal_energy': 'Energy & Performance',
    'goal_longevity': 'Longevity & Anti-aging',
    'goal_weight': 'Weight Optimization',
    'goal_general': 'General Health',
}

MIN_AGE = 1
MAX_AGE = 119


def parse_age(text: str) -> Optional[int]:
    """
    Разбор возраста из текста пользователя.

    Принимает ведущее целое число ("34", "34 years").

    Returns:
        Возраст в диапазоне 1-119 или None
    """
    digits = ''
    for ch in (text or '').strip():
        if ch.isdigit():
            digits += ch
        else:
            break

    if not digits:
        return None

    age = int(digits)
    if MIN_AGE <= age <= MAX_AGE:
        return age
    return None


def is_pregnancy_relevant(user: Dict[str, Any]) -> bool:
    status = user.get('pregnancy_status')
    return bool(status) and status != 'not pregnant'


def profile_context(user: Optional[Dict[str, Any]], extended: bool = False) -> str:
    """
    Строка с профилем пациента для добавления в промпт.

    Args:
        user: Строка пользователя из БД
        extended: Добавить рост, вес, активность и ограничения питания
                  (для планов питания и протоколов добавок)

    Returns:
        Пустая строка, если ни пол, ни возраст не заданы
    """
    if not user or (not user.get('gender') and not user.get('age')):
        return ''

    text = f"\nPatient: {user.get('gender') or '?'}, {user.get('age') or '?'} years"

    if is_pregnancy_relevant(user):
        text += f", {user['pregnancy_status']}"

    if extended:
        if user.get('height'):
            text += f", {user['height']} cm"
        if user.get('weight'):
            text += f", {user['weight']} kg"
        if user.get('activity_level'):
            text += f", activity: {user['activity_level']}"
        if user.get('diet_restrictions'):
            text += f", diet restrictions: {user['diet_restrictions']}"

    if user.get('goal'):
        text += f". Goal: {user['goal']}"

    return text + '.'
