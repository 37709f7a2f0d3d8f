"""
Клавиатуры для Telegram бота.
"""

from urllib.parse import quote

from aiogram.types import ReplyKeyboardMarkup, KeyboardButton, InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.utils.keyboard import ReplyKeyboardBuilder, InlineKeyboardBuilder

# Тексты кнопок главного меню
BTN_ANALYZE = "🔬 Analyze Blood Test"
BTN_MEAL_PLAN = "🥗 Meal Plan"
BTN_SUPPLEMENTS = "💊 Supplement Protocol"
BTN_SYMPTOMS = "📋 Track Symptoms"
BTN_DOCUMENT = "📄 Interpret Document"
BTN_CHAT = "💬 Health Chat"
BTN_FOOD = "🍽 Food Diary"
BTN_DETOX = "🧪 7-Day Detox"
BTN_PROFILE = "👤 My Profile"
BTN_INVITE = "🎁 Invite Friends"
BTN_UPGRADE = "⭐ Upgrade to Pro"

SHARE_TEXT = "Free AI metabolic health analysis of your blood tests"


def get_main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Главное меню бота."""
    builder = ReplyKeyboardBuilder()

    builder.row(KeyboardButton(text=BTN_ANALYZE), KeyboardButton(text=BTN_MEAL_PLAN))
    builder.row(KeyboardButton(text=BTN_SUPPLEMENTS), KeyboardButton(text=BTN_SYMPTOMS))
    builder.row(KeyboardButton(text=BTN_DOCUMENT), KeyboardButton(text=BTN_CHAT))
    builder.row(KeyboardButton(text=BTN_FOOD), KeyboardButton(text=BTN_DETOX))
    builder.row(KeyboardButton(text=BTN_PROFILE), KeyboardButton(text=BTN_INVITE))
    builder.row(KeyboardButton(text=BTN_UPGRADE))

    return builder.as_markup(resize_keyboard=True)


def get_gender_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="♂️ Male", callback_data="gender_male"),
        InlineKeyboardButton(text="♀️ Female", callback_data="gender_female")
    )
    return builder.as_markup()


def get_pregnancy_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🤰 Pregnant", callback_data="preg_yes"))
    builder.row(InlineKeyboardButton(text="🤱 Breastfeeding", callback_data="preg_bf"))
    builder.row(InlineKeyboardButton(text="❌ No", callback_data="preg_no"))
    return builder.as_markup()


def get_goal_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="⚡ Energy & Performance", callback_data="goal_energy"))
    builder.row(InlineKeyboardButton(text="🧬 Longevity & Anti-aging", callback_data="goal_longevity"))
    builder.row(InlineKeyboardButton(text="⚖️ Weight Optimization", callback_data="goal_weight"))
    builder.row(InlineKeyboardButton(text="💚 General Health", callback_data="goal_general"))
    return builder.as_markup()


def get_upgrade_keyboard(checkout_url: str) -> InlineKeyboardMarkup:
    """Кнопка оплаты и пробного периода."""
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="⭐ Upgrade Now", url=checkout_url))
    builder.row(InlineKeyboardButton(text="🎁 Invite friends for free Pro days", callback_data="referral_show"))
    return builder.as_markup()


def get_food_diary_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="➕ Add meal", callback_data="food_add"))
    builder.row(InlineKeyboardButton(text="🔄 Refresh", callback_data="food_today"))
    return builder.as_markup()


def get_detox_keyboard(day: int = None, started: bool = True, finished: bool = False) -> InlineKeyboardMarkup:
    """
    Клавиатура детокс-программы.

    Args:
        day: Текущий день (для кнопки "выполнено")
        started: Программа уже начата
        finished: Программа завершена
    """
    builder = InlineKeyboardBuilder()

    if not started:
        builder.row(InlineKeyboardButton(text="🚀 Start detox", callback_data="detox_start"))
        return builder.as_markup()

    if not finished and day:
        builder.row(InlineKeyboardButton(text=f"✅ Mark day {day} done", callback_data="detox_done"))

    builder.row(InlineKeyboardButton(text="🔁 Restart programme", callback_data="detox_restart"))
    return builder.as_markup()


def get_referral_keyboard(link: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(
        text="📤 Share",
        url=f"https://t.me/share/url?url={quote(link, safe='')}&text={quote(SHARE_TEXT)}"
    ))
    return builder.as_markup()


__all__ = [
    'get_main_menu_keyboard',
    'get_gender_keyboard',
    'get_pregnancy_keyboard',
    'get_goal_keyboard',
    'get_upgrade_keyboard',
    'get_food_diary_keyboard',
    'get_detox_keyboard',
    'get_referral_keyboard',
]
