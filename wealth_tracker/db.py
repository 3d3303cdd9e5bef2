"""Database helpers for wealth_tracker."""
from __future__ import annotations

import os

import aiosqlite

from .settings import settings


SCHEMA = """
CREATE TABLE IF NOT EXISTS positions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    symbol TEXT NOT NULL,
    name TEXT NOT NULL,
    purchase_price REAL NOT NULL,
    quantity REAL NOT NULL,
    asset_type TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_positions_user_created ON positions(user_id, created_at DESC);
"""


async def init_db(db_path: str | None = None) -> None:
    path = db_path or settings.DB_PATH
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    async with aiosqlite.connect(path) as conn:
        await conn.executescript(SCHEMA)
        await conn.commit()


async def open_db(db_path: str | None = None) -> aiosqlite.Connection:
    path = db_path or settings.DB_PATH
    conn = await aiosqlite.connect(path)
    conn.row_factory = aiosqlite.Row
    return conn
