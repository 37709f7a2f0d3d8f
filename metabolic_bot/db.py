"""
Модуль для работы с базой данных SQLite.

Хранит профили пользователей, счётчики использования, симптомы,
дневник питания, детокс-программу и журнал действий.
"""

import aiosqlite
import sqlite3
from pathlib import Path
from typing import List, Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

# Колонки, добавленные после первого релиза: имя -> определение
MIGRATION_COLUMNS = {
    'height': 'INTEGER',
    'weight': 'REAL',
    'activity_level': 'TEXT',
    'diet_restrictions': 'TEXT',
    'trial_expires': 'INTEGER DEFAULT 0',
    'referral_code': 'TEXT',
    'referred_by': 'INTEGER DEFAULT 0',
    'trial_used': 'INTEGER DEFAULT 0',
    'reminders_enabled': 'INTEGER DEFAULT 1',
}

# Поля, которые можно менять через update_user
UPDATABLE_FIELDS = {
    'username', 'first_name', 'gender', 'age', 'height', 'weight',
    'activity_level', 'diet_restrictions', 'pregnancy_status', 'goal',
    'is_pro', 'tz_offset', 'lang', 'trial_expires', 'trial_used',
    'reminders_enabled',
}

COUNTER_FIELDS = {'analysis_count', 'chat_count'}

SYMPTOM_HISTORY_LIMIT = 20


class Database:
    """Класс для работы с базой данных."""

    def __init__(self, db_path: Path):
        """
        Инициализация базы данных.

        Args:
            db_path: Путь к файлу базы данных
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    async def init_db(self):
        """Создание таблиц и миграции."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA journal_mode = WAL")

            # Таблица пользователей
            await db.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY,
                    username TEXT,
                    first_name TEXT,
                    gender TEXT,
                    age INTEGER,
                    pregnancy_status TEXT,
                    goal TEXT,
                    is_pro INTEGER DEFAULT 0,
                    tz_offset INTEGER DEFAULT 0,
                    lang TEXT DEFAULT 'en',
                    analysis_count INTEGER DEFAULT 0,
                    chat_count INTEGER DEFAULT 0,
                    joined_at TEXT DEFAULT (datetime('now')),
                    last_active TEXT DEFAULT (datetime('now'))
                )
            """)

            # Симптомы
            await db.execute("""
                CREATE TABLE IF NOT EXISTS symptoms (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    text TEXT,
                    created_at TEXT DEFAULT (datetime('now')),
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)

            # Журнал действий (для /stats)
            await db.execute("""
                CREATE TABLE IF NOT EXISTS activity_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    event TEXT,
                    details TEXT,
                    created_at TEXT DEFAULT (datetime('now'))
                )
            """)

            # Дневник питания
            await db.execute("""
                CREATE TABLE IF NOT EXISTS food_diary (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    description TEXT,
                    calories INTEGER,
                    protein REAL,
                    carbs REAL,
                    fat REAL,
                    created_at TEXT DEFAULT (datetime('now')),
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)

            # Детокс-программа (одна на пользователя)
            await db.execute("""
                CREATE TABLE IF NOT EXISTS detox (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER UNIQUE,
                    day INTEGER DEFAULT 1,
                    started_at TEXT DEFAULT (datetime('now')),
                    completed_days TEXT DEFAULT '',
                    FOREIGN KEY (user_id) REFERENCES users(id)
                )
            """)

            await self._migrate(db)

            # Индексы
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_symptoms_user
                ON symptoms(user_id, created_at DESC)
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_food_user_created
                ON food_diary(user_id, created_at)
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_activity_created
                ON activity_log(created_at)
            """)

            await db.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_users_referral_code
                ON users(referral_code)
            """)

            await db.commit()
            logger.info("✅ База данных инициализирована")

    async def _migrate(self, db: aiosqlite.Connection):
        """Добавление недостающих колонок в таблицу users."""
        async with db.execute("PRAGMA table_info(users)") as cursor:
            existing = {row[1] for row in await cursor.fetchall()}

        for column, definition in MIGRATION_COLUMNS.items():
            if column not in existing:
                await db.execute(f"ALTER TABLE users ADD COLUMN {column} {definition}")
                logger.info(f"🔧 Миграция: добавлена колонка users.{column}")

    # ============================================
    # ПОЛЬЗОВАТЕЛИ
    # ============================================

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
                return dict(row) if row else None

    async def ensure_user(
        self,
        user_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Создание пользователя, если его нет, и обновление last_active.

        Returns:
            Строка пользователя; ключ 'is_new' = True, если создан сейчас
        """
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row

            cursor = await db.execute("""
                INSERT OR IGNORE INTO users (id, username, first_name, joined_at, last_active)
                VALUES (?, ?, ?, datetime('now'), datetime('now'))
            """, (user_id, username, first_name))
            is_new = cursor.rowcount == 1

            if not is_new:
                await db.execute("""
                    UPDATE users
                    SET username = COALESCE(?, username),
                        first_name = COALESCE(?, first_name),
                        last_active = datetime('now')
                    WHERE id = ?
                """, (username, first_name, user_id))

            await db.commit()

            async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
                user = dict(await cursor.fetchone())

        if is_new:
            logger.info(f"👤 Новый пользователь {user_id} (@{username})")

        user['is_new'] = is_new
        return user

    async def update_user(self, user_id: int, **fields) -> None:
        """
        Обновление полей профиля.

        Args:
            user_id: ID пользователя
            **fields: Поля из UPDATABLE_FIELDS
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {', '.join(sorted(unknown))}")

        if not fields:
            return

        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = list(fields.values()) + [user_id]

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"UPDATE users SET {assignments}, last_active = datetime('now') WHERE id = ?",
                values
            )
            await db.commit()

    async def increment_counter(self, user_id: int, field: str) -> int:
        """
        Атомарное увеличение счётчика использования.

        Returns:
            Новое значение счётчика
        """
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Unknown counter: {field}")

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"UPDATE users SET {field} = {field} + 1, last_active = datetime('now') WHERE id = ?",
                (user_id,)
            )
            await db.commit()

            async with db.execute(f"SELECT {field} FROM users WHERE id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def get_reminder_candidates(self) -> List[Dict[str, Any]]:
        """Пользователи с включёнными напоминаниями."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM users WHERE reminders_enabled = 1"
            ) as cursor:
                return [dict(row) for row in await cursor.fetchall()]

    # ============================================
    # СИМПТОМЫ И ЖУРНАЛ
    # ============================================

    async def add_symptom(self, user_id: int, text: str) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "INSERT INTO symptoms (user_id, text) VALUES (?, ?)",
                (user_id, text)
            )
            await db.commit()
            return cursor.lastrowid

    async def get_symptoms(self, user_id: int, limit: int = SYMPTOM_HISTORY_LIMIT) -> List[Dict[str, Any]]:
        """Последние симптомы пользователя (новые первыми)."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("""
                SELECT * FROM symptoms
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
            """, (user_id, limit)) as cursor:
                return [dict(row) for row in await cursor.fetchall()]

    async def log_event(self, user_id: int, event: str, details: str = '') -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO activity_log (user_id, event, details) VALUES (?, ?, ?)",
                (user_id, event, details or '')
            )
            await db.commit()

    # ============================================
    # ДНЕВНИК ПИТАНИЯ
    # ============================================

    async def add_food_entry(
        self,
        user_id: int,
        description: str,
        calories: int,
        protein: float,
        carbs: float,
        fat: float
    ) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("""
                INSERT INTO food_diary (user_id, description, calories, protein, carbs, fat)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (user_id, description, calories, protein, carbs, fat))
            await db.commit()
            return cursor.lastrowid

    async def get_food_since(self, user_id: int, since: str) -> List[Dict[str, Any]]:
        """
        Записи дневника начиная с момента since (UTC, формат SQLite).

        Для "сегодня" since = начало локального дня пользователя.
        """
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("""
                SELECT * FROM food_diary
                WHERE user_id = ? AND created_at >= ?
                ORDER BY created_at DESC, id DESC
            """, (user_id, since)) as cursor:
                return [dict(row) for row in await cursor.fetchall()]

    async def get_recent_food(self, user_id: int, limit: int = 30) -> List[Dict[str, Any]]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("""
                SELECT * FROM food_diary
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
            """, (user_id, limit)) as cursor:
                return [dict(row) for row in await cursor.fetchall()]

    async def has_food_since(self, user_id: int, since: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT 1 FROM food_diary WHERE user_id = ? AND created_at >= ? LIMIT 1",
                (user_id, since)
            ) as cursor:
                return await cursor.fetchone() is not None

    # ============================================
    # ДЕТОКС
    # ============================================

    async def get_detox(self, user_id: int) -> Optional[Dict[str, Any]]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM detox WHERE user_id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
                return dict(row) if row else None

    async def start_detox(self, user_id: int) -> None:
        """Старт (или перезапуск) программы с первого дня."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                INSERT INTO detox (user_id, day, started_at, completed_days)
                VALUES (?, 1, datetime('now'), '')
                ON CONFLICT(user_id) DO UPDATE SET
                    day = 1, started_at = datetime('now'), completed_days = ''
            """, (user_id,))
            await db.commit()

    async def update_detox(self, user_id: int, day: int, completed_days: str) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE detox SET day = ?, completed_days = ? WHERE user_id = ?",
                (day, completed_days, user_id)
            )
            await db.commit()

    async def get_active_detox(self) -> List[Dict[str, Any]]:
        """Все детокс-программы (незавершённые отфильтровываются вызывающим кодом)."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM detox") as cursor:
                return [dict(row) for row in await cursor.fetchall()]

    # ============================================
    # РЕФЕРАЛЫ
    # ============================================

    async def get_user_by_referral(self, code: str) -> Optional[Dict[str, Any]]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM users WHERE referral_code = ?", (code,)) as cursor:
                row = await cursor.fetchone()
                return dict(row) if row else None

    async def set_referral_code(self, user_id: int, code: str) -> bool:
        """
        Сохранение реферального кода.

        Returns:
            False если код уже занят другим пользователем
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "UPDATE users SET referral_code = ? WHERE id = ?",
                    (code, user_id)
                )
                await db.commit()
        except sqlite3.IntegrityError:
            logger.warning(f"Коллизия реферального кода {code}")
            return False
        return True

    async def set_referred_by(self, user_id: int, referrer_id: int) -> bool:
        """
        Привязка пользователя к пригласившему.

        Срабатывает только один раз: если referred_by уже задан, ничего не меняет.
        """
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "UPDATE users SET referred_by = ? WHERE id = ? AND COALESCE(referred_by, 0) = 0",
                (referrer_id, user_id)
            )
            await db.commit()
            return cursor.rowcount == 1

    async def count_referrals(self, user_id: int) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT COUNT(*) FROM users WHERE referred_by = ?", (user_id,)
            ) as cursor:
                row = await cursor.fetchone()
                return row[0]

    # ============================================
    # СТАТИСТИКА
    # ============================================

    async def stats(self) -> Dict[str, Any]:
        """Статистика для администратора."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row

            async def scalar(query: str) -> int:
                async with db.execute(query) as cursor:
                    row = await cursor.fetchone()
                    return row[0] or 0

            result = {
                'total_users': await scalar("SELECT COUNT(*) FROM users"),
                'pro_users': await scalar("SELECT COUNT(*) FROM users WHERE is_pro = 1"),
                'total_analyses': await scalar("SELECT SUM(analysis_count) FROM users"),
                'total_chats': await scalar("SELECT SUM(chat_count) FROM users"),
                'today_users': await scalar("SELECT COUNT(*) FROM users WHERE joined_at >= date('now')"),
                'today_activity': await scalar("SELECT COUNT(*) FROM activity_log WHERE created_at >= date('now')"),
                'detox_started': await scalar("SELECT COUNT(*) FROM detox"),
            }

            async with db.execute(
                "SELECT * FROM users ORDER BY joined_at DESC, id DESC LIMIT 10"
            ) as cursor:
                result['recent_users'] = [dict(row) for row in await cursor.fetchall()]

            return result


# Глобальный экземпляр базы данных
_db_instance: Optional[Database] = None


async def get_database(db_path: Path = None) -> Database:
    """
    Получение глобального экземпляра базы данных.

    Args:
        db_path: Путь к файлу БД (используется только при первом вызове)
    """
    global _db_instance

    if _db_instance is None:
        if db_path is None:
            from metabolic_bot.config import BotConfig
            db_path = BotConfig.DB_PATH

        _db_instance = Database(db_path)
        await _db_instance.init_db()

    return _db_instance
