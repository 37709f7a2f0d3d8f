"""
7-дневная детокс-программа.

Контент дней и правила прогресса. Прогресс хранится в таблице detox:
day: текущий день программы, completed_days: выполненные дни через запятую.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

TOTAL_DAYS = 7

# Через сколько дней после старта перестаём напоминать о незавершённой программе
REMINDER_WINDOW_DAYS = 14

SQLITE_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass
class DetoxDay:
    """Один день программы."""
    number: int
    title: str
    icon: str
    tasks: List[str] = field(default_factory=list)


DETOX_DAYS = [
    DetoxDay(
        number=1,
        title="Sugar Reset",
        icon="🍬",
        tasks=[
            "Remove added sugar and sweet drinks",
            "Drink 2+ liters of water",
            "10-minute walk after each meal",
        ]
    ),
    DetoxDay(
        number=2,
        title="Whole Foods",
        icon="🥦",
        tasks=[
            "No ultra-processed foods today",
            "Fill half of each plate with vegetables",
            "Protein with every meal",
        ]
    ),
    DetoxDay(
        number=3,
        title="Gut Support",
        icon="🦠",
        tasks=[
            "Add one fermented food (kefir, sauerkraut, kimchi)",
            "30 g of fiber from plants",
            "Chew slowly, no screens while eating",
        ]
    ),
    DetoxDay(
        number=4,
        title="Sleep & Circadian Rhythm",
        icon="😴",
        tasks=[
            "Morning daylight for 10 minutes",
            "No caffeine after 14:00",
            "Last meal 3 hours before bed",
        ]
    ),
    DetoxDay(
        number=5,
        title="Movement",
        icon="🏃",
        tasks=[
            "8,000+ steps",
            "20 minutes of strength or mobility work",
            "Stand up every hour",
        ]
    ),
    DetoxDay(
        number=6,
        title="Stress & Inflammation",
        icon="🧘",
        tasks=[
            "5 minutes of slow breathing twice a day",
            "Omega-3 rich meal (fish, walnuts, flax)",
            "No alcohol",
        ]
    ),
    DetoxDay(
        number=7,
        title="Metabolic Flexibility",
        icon="🔥",
        tasks=[
            "12-hour overnight fast",
            "Reflect: which habits will you keep?",
            "Plan next week's meals",
        ]
    ),
]


def get_day(number: int) -> DetoxDay:
    """День программы по номеру (номер приводится к диапазону 1-7)."""
    number = min(max(number, 1), TOTAL_DAYS)
    return DETOX_DAYS[number - 1]


def parse_completed(value: Optional[str]) -> List[int]:
    """'1,2,4' -> [1, 2, 4]. Мусор и дубликаты отбрасываются."""
    days = set()
    for part in (value or '').split(','):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= TOTAL_DAYS:
            days.add(int(part))
    return sorted(days)


def format_completed(days: List[int]) -> str:
    return ','.join(str(d) for d in sorted(set(days)))


def parse_started_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value[:19], SQLITE_TIME_FORMAT)
    except ValueError:
        return None


def days_since_start(detox: Dict[str, Any], now: Optional[datetime] = None) -> int:
    started = parse_started_at(detox.get('started_at'))
    if started is None:
        return 0
    now = now or datetime.utcnow()
    return max(0, (now - started).days)


def scheduled_day(detox: Dict[str, Any], now: Optional[datetime] = None) -> int:
    """День программы по календарю: дни со старта + 1, не больше 7."""
    return min(days_since_start(detox, now) + 1, TOTAL_DAYS)


def is_finished(detox: Optional[Dict[str, Any]]) -> bool:
    if not detox:
        return False
    return len(parse_completed(detox.get('completed_days'))) >= TOTAL_DAYS


def complete_current_day(detox: Dict[str, Any]) -> Tuple[int, str, bool]:
    """
    Отметить текущий день программы выполненным.

    Повторная отметка того же дня ничего не меняет.

    Args:
        detox: Строка из таблицы detox

    Returns:
        (новый текущий день, новое значение completed_days, программа завершена)
    """
    completed = parse_completed(detox.get('completed_days'))
    day = min(max(detox.get('day') or 1, 1), TOTAL_DAYS)

    if len(completed) >= TOTAL_DAYS:
        return day, format_completed(completed), True

    if day not in completed:
        completed.append(day)

    next_day = min(day + 1, TOTAL_DAYS)
    finished = len(completed) >= TOTAL_DAYS

    return next_day, format_completed(completed), finished


def format_day_tasks(day: DetoxDay) -> str:
    tasks = "\n".join(f"• {task}" for task in day.tasks)
    return f"{day.icon} *Day {day.number}: {day.title}*\n{tasks}"


def render_progress(detox: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Текст с прогрессом программы для пользователя."""
    completed = parse_completed(detox.get('completed_days'))
    marks = ' '.join(
        f"{'✅' if d in completed else '⬜'}{d}" for d in range(1, TOTAL_DAYS + 1)
    )

    lines = [
        "🧪 *7-Day Metabolic Detox*",
        "",
        marks,
        f"Completed: {len(completed)}/{TOTAL_DAYS}",
    ]

    if len(completed) >= TOTAL_DAYS:
        lines += ["", "🏆 Programme complete! Keep the habits that worked for you."]
        return "\n".join(lines)

    current = get_day(detox.get('day') or 1)
    behind = scheduled_day(detox, now) - current.number
    if behind > 0:
        lines.append(f"⏳ You are {behind} day(s) behind schedule, no stress, just continue.")

    lines += ["", format_day_tasks(current)]
    return "\n".join(lines)
