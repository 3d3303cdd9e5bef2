"""Pydantic models for wealth_tracker."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


SYMBOL_MAX_LENGTH = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorCode(str, Enum):
    BAD_INPUT = "BAD_INPUT"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"


class ErrorBody(BaseModel):
    code: ErrorCode
    message: str
    source: str = "wealth_tracker"
    retriable: bool = False
    details: Optional[Dict[str, Any]] = None


class OkEnvelope(BaseModel):
    ok: bool = True
    data: Any
    ts: datetime = Field(default_factory=utcnow)


class ErrEnvelope(BaseModel):
    ok: bool = False
    error: ErrorBody
    ts: datetime = Field(default_factory=utcnow)


class UserContext(BaseModel):
    user_id: str


# ---------------------------------------------------------------------- assets

class Asset(BaseModel):
    symbol: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    type: str = ""
    logo: Optional[str] = None


# ------------------------------------------------------------------- positions

class Position(BaseModel):
    id: str
    user_id: str
    symbol: str
    name: str
    purchase_price: float
    quantity: float
    asset_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ValuedPosition(Position):
    """A position priced at read time. Never persisted."""

    current_price: float
    current_value: float
    total_cost: float
    profit_loss: float
    profit_loss_percentage: float
    price_available: bool = True


class AllocationEntry(BaseModel):
    symbol: str
    name: str
    value: float
    percentage: float


class PortfolioSummary(BaseModel):
    total_balance: float
    total_cost: float
    total_profit_loss: float
    total_profit_loss_percentage: float
    active_assets: int
    allocation: List[AllocationEntry]
    items: List[ValuedPosition]


# -------------------------------------------------------------------- requests

def _clean_symbol(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("symbol is required")
    if len(value) > SYMBOL_MAX_LENGTH:
        raise ValueError(f"symbol must not exceed {SYMBOL_MAX_LENGTH} characters")
    return value


def _check_positive(value: float, label: str) -> float:
    if value <= 0:
        raise ValueError(f"{label} must be positive")
    return value


class CreatePositionRequest(BaseModel):
    symbol: str
    purchase_price: float
    quantity: float

    @field_validator("symbol")
    @classmethod
    def check_symbol(cls, value: str) -> str:
        return _clean_symbol(value)

    @field_validator("purchase_price")
    @classmethod
    def check_purchase_price(cls, value: float) -> float:
        return _check_positive(value, "purchase price")

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, value: float) -> float:
        return _check_positive(value, "quantity")


class UpdatePositionRequest(BaseModel):
    symbol: Optional[str] = None
    purchase_price: Optional[float] = None
    quantity: Optional[float] = None

    @field_validator("symbol")
    @classmethod
    def check_symbol(cls, value: Optional[str]) -> Optional[str]:
        return _clean_symbol(value) if value is not None else None

    @field_validator("purchase_price")
    @classmethod
    def check_purchase_price(cls, value: Optional[float]) -> Optional[float]:
        return _check_positive(value, "purchase price") if value is not None else None

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, value: Optional[float]) -> Optional[float]:
        return _check_positive(value, "quantity") if value is not None else None
