"""Portfolio operations: position bookkeeping and valuation."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiosqlite

from .assets import AssetPriceCache, asset_cache
from .models import (
    CreatePositionRequest,
    ErrorCode,
    PortfolioSummary,
    Position,
    UpdatePositionRequest,
    ValuedPosition,
)
from .repositories import PositionRepository
from .valuation import summarise, value_position


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BusinessError(Exception):
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None


class PortfolioService:
    """Core entrypoint for portfolio operations."""

    def __init__(self, conn: aiosqlite.Connection, assets: AssetPriceCache | None = None) -> None:
        self.conn = conn
        self.repo = PositionRepository(conn)
        self.assets = assets or asset_cache

    # ------------------------------------------------------------------ utilities

    async def _owned(self, position_id: str, user_id: str) -> Position:
        position = await self.repo.find_by_id(position_id)
        if position is None:
            raise BusinessError(ErrorCode.NOT_FOUND, "Portfolio item not found", {"id": position_id})
        if position.user_id != user_id:
            raise BusinessError(ErrorCode.FORBIDDEN, "Access denied", {"id": position_id})
        return position

    async def _value(self, position: Position) -> ValuedPosition:
        price = await self.assets.get_price(position.symbol)
        if price is None:
            logger.warning(f"No price for {position.symbol}, valuing position {position.id} at 0")
        return value_position(position, price)

    # -------------------------------------------------------------- query methods

    async def list_positions(self, user_id: str) -> List[ValuedPosition]:
        positions = await self.repo.list_by_user(user_id)
        return list(await asyncio.gather(*(self._value(p) for p in positions)))

    async def get_position(self, position_id: str, user_id: str) -> ValuedPosition:
        position = await self._owned(position_id, user_id)
        return await self._value(position)

    async def get_summary(self, user_id: str) -> PortfolioSummary:
        return summarise(await self.list_positions(user_id))

    # -------------------------------------------------------------- mutation flow

    async def add_position(self, user_id: str, request: CreatePositionRequest) -> Position:
        symbol = request.symbol.upper()
        asset = await self.assets.get_by_symbol(symbol)
        position = await self.repo.create(
            user_id=user_id,
            symbol=symbol,
            name=asset.name if asset else request.symbol,
            purchase_price=request.purchase_price,
            quantity=request.quantity,
            asset_type=asset.type if asset else None,
        )
        logger.info(f"Added position {position.id} ({symbol}) for user {user_id}")
        return position

    async def update_position(self, position_id: str, user_id: str, request: UpdatePositionRequest) -> Position:
        """
        Apply the fields present in ``request``.

        A new symbol is looked up in the asset cache; name and type are only
        overwritten when it resolves, otherwise the previous ones are kept.
        """
        position = await self._owned(position_id, user_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if "symbol" in changes:
            changes["symbol"] = changes["symbol"].upper()
            if changes["symbol"] != position.symbol:
                asset = await self.assets.get_by_symbol(changes["symbol"])
                if asset is not None:
                    changes["name"] = asset.name
                    changes["asset_type"] = asset.type
        updated = await self.repo.update(position_id, changes)
        if updated is None:
            raise BusinessError(ErrorCode.NOT_FOUND, "Portfolio item not found", {"id": position_id})
        return updated

    async def remove_position(self, position_id: str, user_id: str) -> None:
        await self._owned(position_id, user_id)
        await self.repo.delete(position_id)
        logger.info(f"Removed position {position_id} for user {user_id}")
