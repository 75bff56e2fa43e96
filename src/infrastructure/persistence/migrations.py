"""
infrastructure.persistence.migrations - Database schema creation.

Called once at startup by the factory or the CLI `init` command.
List-valued fields (allergens, cuisines, times) are stored as JSON text.
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_TABLES = [
    """CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user',
        timezone TEXT NOT NULL DEFAULT 'Asia/Bangkok',
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS menus (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        meal_type TEXT NOT NULL,
        cuisine TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        notes TEXT,
        allergens TEXT NOT NULL DEFAULT '[]',
        budget_min REAL,
        budget_max REAL,
        image_url TEXT,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS preferences (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE,
        cuisines TEXT NOT NULL DEFAULT '[]',
        allergens_avoid TEXT NOT NULL DEFAULT '[]',
        budget_min REAL,
        budget_max REAL,
        excluded_meal_types TEXT NOT NULL DEFAULT '[]',
        created_at TEXT,
        updated_at TEXT,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )""",
    """CREATE TABLE IF NOT EXISTS schedules (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE,
        times TEXT NOT NULL DEFAULT '["08:00","12:00","18:00"]',
        timezone TEXT NOT NULL DEFAULT 'Asia/Bangkok',
        created_at TEXT,
        updated_at TEXT,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )""",
    """CREATE TABLE IF NOT EXISTS daily_suggestions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        date TEXT NOT NULL,
        breakfast_menu_id INTEGER,
        lunch_menu_id INTEGER,
        dinner_menu_id INTEGER,
        created_at TEXT,
        updated_at TEXT,
        UNIQUE (user_id, date),
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
        FOREIGN KEY (breakfast_menu_id) REFERENCES menus(id) ON DELETE SET NULL,
        FOREIGN KEY (lunch_menu_id) REFERENCES menus(id) ON DELETE SET NULL,
        FOREIGN KEY (dinner_menu_id) REFERENCES menus(id) ON DELETE SET NULL
    )""",
]

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)",
    "CREATE INDEX IF NOT EXISTS idx_menus_meal_type_active ON menus(meal_type, is_active)",
]


async def run_migrations(connection: AsyncSQLiteConnection) -> None:
    """Create all tables if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    async with connection.acquire() as conn:
        for ddl in _TABLES + _INDEXES:
            await conn.execute(ddl)
    logger.info("All tables created (or already exist).")
