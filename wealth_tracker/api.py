"""FastAPI router exposing wealth_tracker endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from . import db
from .assets import AssetPriceCache, asset_cache
from .models import (
    CreatePositionRequest,
    ErrEnvelope,
    ErrorBody,
    ErrorCode,
    OkEnvelope,
    UpdatePositionRequest,
    UserContext,
)
from .services import BusinessError, PortfolioService


router = APIRouter(prefix="/api")

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.FORBIDDEN: 403,
}


async def db_dep():
    conn = await db.open_db()
    try:
        yield conn
    finally:
        await conn.close()


def assets_dep() -> AssetPriceCache:
    return asset_cache


async def user_dep(user_id: str = Query(..., min_length=1)) -> UserContext:
    return UserContext(user_id=user_id)


def success(data: Any, status_code: int = 200) -> JSONResponse:
    payload = OkEnvelope(data=data)
    return JSONResponse(content=jsonable_encoder(payload), status_code=status_code)


def failure(code: ErrorCode, message: str, *, retriable: bool = False, details: dict | None = None, status_code: int = 400) -> JSONResponse:
    error = ErrEnvelope(error=ErrorBody(code=code, message=message, retriable=retriable, details=details))
    return JSONResponse(content=jsonable_encoder(error), status_code=status_code)


def business_failure(exc: BusinessError) -> JSONResponse:
    return failure(exc.code, exc.message, details=exc.details, status_code=STATUS_BY_CODE.get(exc.code, 400))


# ---------------------------------------------------------------------- assets

@router.get("/assets")
async def list_assets(assets: AssetPriceCache = Depends(assets_dep)):
    items = await assets.get_all()
    return success({"assets": items, "count": len(items)})


@router.get("/assets/search")
async def search_assets(q: str = Query(""), assets: AssetPriceCache = Depends(assets_dep)):
    items = await assets.search(q)
    return success({"assets": items, "count": len(items)})


@router.get("/assets/symbol/{symbol}")
async def lookup_asset(symbol: str, assets: AssetPriceCache = Depends(assets_dep)):
    asset = await assets.get_by_symbol(symbol)
    if asset is None:
        return failure(ErrorCode.NOT_FOUND, f"{symbol.upper()} not found", status_code=404)
    return success({"asset": asset})


@router.get("/assets/type/{asset_type}")
async def assets_by_type(asset_type: str, assets: AssetPriceCache = Depends(assets_dep)):
    items = await assets.get_by_type(asset_type)
    return success({"assets": items, "count": len(items)})


# ------------------------------------------------------------------- portfolio

@router.post("/portfolio")
async def create_position(
    payload: CreatePositionRequest,
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    position = await service.add_position(uc.user_id, payload)
    return success({"position": position}, status_code=201)


@router.get("/portfolio")
async def list_positions(
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    items = await service.list_positions(uc.user_id)
    return success({"items": items, "count": len(items)})


@router.get("/portfolio/summary")
async def portfolio_summary(
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    summary = await service.get_summary(uc.user_id)
    return success({"summary": summary})


@router.get("/portfolio/{position_id}")
async def get_position(
    position_id: str,
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    try:
        item = await service.get_position(position_id, uc.user_id)
        return success({"item": item})
    except BusinessError as exc:
        return business_failure(exc)


@router.patch("/portfolio/{position_id}")
async def update_position(
    position_id: str,
    payload: UpdatePositionRequest,
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    try:
        position = await service.update_position(position_id, uc.user_id, payload)
        return success({"position": position})
    except BusinessError as exc:
        return business_failure(exc)


@router.delete("/portfolio/{position_id}")
async def delete_position(
    position_id: str,
    uc: UserContext = Depends(user_dep),
    conn=Depends(db_dep),
    assets: AssetPriceCache = Depends(assets_dep),
):
    service = PortfolioService(conn, assets)
    try:
        await service.remove_position(position_id, uc.user_id)
        return success({"deleted": position_id})
    except BusinessError as exc:
        return business_failure(exc)
