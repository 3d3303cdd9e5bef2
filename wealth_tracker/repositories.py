"""Database repository helpers."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite

from .models import Position


UPDATABLE_COLUMNS = ("symbol", "name", "purchase_price", "quantity", "asset_type")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_position(row: aiosqlite.Row) -> Position:
    return Position.model_validate(dict(row))


class PositionRepository:
    """Data access for the positions table. Each call commits on its own."""

    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def find_by_id(self, position_id: str) -> Optional[Position]:
        async with self.conn.execute(
            "SELECT * FROM positions WHERE id = ?",
            (position_id,),
        ) as cursor:
            row = await cursor.fetchone()
        return _to_position(row) if row else None

    async def list_by_user(self, user_id: str) -> List[Position]:
        async with self.conn.execute(
            "SELECT * FROM positions WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_to_position(row) for row in rows]

    async def create(
        self,
        *,
        user_id: str,
        symbol: str,
        name: str,
        purchase_price: float,
        quantity: float,
        asset_type: Optional[str],
    ) -> Position:
        position_id = uuid.uuid4().hex
        now = _now_iso()
        await self.conn.execute(
            """
            INSERT INTO positions (
                id, user_id, symbol, name, purchase_price, quantity, asset_type, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (position_id, user_id, symbol, name, purchase_price, quantity, asset_type, now, now),
        )
        await self.conn.commit()
        return Position(
            id=position_id,
            user_id=user_id,
            symbol=symbol,
            name=name,
            purchase_price=purchase_price,
            quantity=quantity,
            asset_type=asset_type,
            created_at=now,
            updated_at=now,
        )

    async def update(self, position_id: str, changes: Dict[str, Any]) -> Optional[Position]:
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_COLUMNS}
        if fields:
            assignments = ", ".join(f"{column} = ?" for column in fields)
            await self.conn.execute(
                f"UPDATE positions SET {assignments}, updated_at = ? WHERE id = ?",
                (*fields.values(), _now_iso(), position_id),
            )
            await self.conn.commit()
        return await self.find_by_id(position_id)

    async def delete(self, position_id: str) -> None:
        await self.conn.execute("DELETE FROM positions WHERE id = ?", (position_id,))
        await self.conn.commit()
