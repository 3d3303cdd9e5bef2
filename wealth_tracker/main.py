"""FastAPI application entrypoint."""
from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import db
from .api import router
from .assets import asset_cache
from .clients import feed_client
from .cors import add_cors
from .models import ErrEnvelope, ErrorBody, ErrorCode
from .settings import settings


logger = logging.getLogger(settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME)
add_cors(app, settings)
app.include_router(router)


@app.on_event("startup")
async def startup() -> None:
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    await db.init_db()
    logger.info(f"{settings.APP_NAME} started, asset feed at {feed_client.base_url}")


@app.on_event("shutdown")
async def shutdown() -> None:
    await feed_client.close()


def _plain_errors(exc: RequestValidationError) -> list:
    # ctx carries the raw exception raised by field validators
    return [
        {key: ({k: str(v) for k, v in value.items()} if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    payload = ErrEnvelope(
        error=ErrorBody(
            code=ErrorCode.BAD_INPUT,
            message="invalid input",
            details={"errors": _plain_errors(exc)},
        )
    )
    return JSONResponse(status_code=400, content=jsonable_encoder(payload))


@app.get("/health")
async def health() -> dict:
    return {"ok": True, "status": "healthy", "asset_cache": asset_cache.stats()}


def run() -> None:
    uvicorn.run("wealth_tracker.main:app", host=settings.HOST, port=settings.PORT)


__all__ = ["app", "run"]
