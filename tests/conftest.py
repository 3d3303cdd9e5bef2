from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wealth_tracker import db
from wealth_tracker.api import assets_dep
from wealth_tracker.assets import AssetPriceCache
from wealth_tracker.clients import FeedError, parse_assets
from wealth_tracker.main import app
from wealth_tracker.models import Asset
from wealth_tracker.settings import settings


FEED_URL = "http://feed.test"


def raw_asset(symbol: str, price: Any, name: Optional[str] = None, type_: str = "Technology") -> Dict[str, Any]:
    return {
        "Symbol": symbol,
        "Name": name or f"{symbol} Inc.",
        "Description": f"{symbol} description",
        "Current Price": str(price),
        "Type": type_,
        "Logo URL": f"https://logos.test/{symbol.lower()}.png",
    }


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeFeed:
    """Stands in for AssetFeedClient; counts calls and can be told to fail."""

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None) -> None:
        self.items = list(items or [])
        self.fail = False
        self.delay = 0.0
        self.calls = 0
        self.type_calls: List[str] = []

    async def fetch_all(self) -> List[Asset]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise FeedError("feed down")
        return parse_assets(self.items)

    async def fetch_by_type(self, asset_type: str) -> List[Asset]:
        self.type_calls.append(asset_type)
        if self.fail:
            raise FeedError("feed down")
        return [a for a in parse_assets(self.items) if a.type == asset_type]


DEFAULT_ITEMS = [
    raw_asset("AAPL", "150", name="Apple Inc."),
    raw_asset("TSLA", "80", name="Tesla, Inc.", type_="Automotive"),
    raw_asset("ETH", "2500", name="Ethereum", type_="Cryptocurrency"),
]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed(DEFAULT_ITEMS)


@pytest.fixture
def cache(feed: FakeFeed, clock: FakeClock) -> AssetPriceCache:
    return AssetPriceCache(feed, ttl_sec=300, search_limit=20, clock=clock)


@pytest_asyncio.fixture
async def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "wealth_tracker.db")
    settings.DB_PATH = path
    await db.init_db(path)
    return path


@pytest_asyncio.fixture
async def conn(db_path: str):
    connection = await db.open_db(db_path)
    try:
        yield connection
    finally:
        await connection.close()


@pytest_asyncio.fixture
async def async_client(db_path: str, cache: AssetPriceCache) -> AsyncClient:
    app.dependency_overrides[assets_dep] = lambda: cache
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
