"""
Portfolio valuation math.

All figures are plain floats and nothing is rounded here; formatting is
left to whoever renders the numbers.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from .models import AllocationEntry, PortfolioSummary, Position, ValuedPosition


def percentage(part: float, whole: float) -> float:
    """``part`` as a percentage of ``whole``, 0 when ``whole`` is not positive."""
    return part / whole * 100 if whole > 0 else 0.0


def value_position(position: Position, price: Optional[float]) -> ValuedPosition:
    """Price a stored position. ``price=None`` marks the asset as unknown."""
    current_price = price if price is not None else 0.0
    current_value = current_price * position.quantity
    total_cost = position.purchase_price * position.quantity
    profit_loss = current_value - total_cost
    return ValuedPosition(
        **position.model_dump(),
        current_price=current_price,
        current_value=current_value,
        total_cost=total_cost,
        profit_loss=profit_loss,
        profit_loss_percentage=percentage(profit_loss, total_cost),
        price_available=price is not None,
    )


def allocation(items: List[ValuedPosition], total_balance: float) -> List[AllocationEntry]:
    """Share of the total balance per symbol, in first-seen order."""
    values: Dict[str, float] = {}
    names: Dict[str, str] = {}
    for item in items:
        values[item.symbol] = values.get(item.symbol, 0.0) + item.current_value
        names.setdefault(item.symbol, item.name)
    return [
        AllocationEntry(
            symbol=symbol,
            name=names[symbol],
            value=value,
            percentage=percentage(value, total_balance),
        )
        for symbol, value in values.items()
    ]


def summarise(items: List[ValuedPosition]) -> PortfolioSummary:
    total_balance = sum((item.current_value for item in items), 0.0)
    total_cost = sum((item.total_cost for item in items), 0.0)
    total_profit_loss = total_balance - total_cost
    return PortfolioSummary(
        total_balance=total_balance,
        total_cost=total_cost,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percentage=percentage(total_profit_loss, total_cost),
        active_assets=len(items),
        allocation=allocation(items, total_balance),
        items=items,
    )
