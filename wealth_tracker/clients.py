"""Client for the external asset price feed."""
from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .models import Asset
from .settings import settings


logger = logging.getLogger(__name__)


class FeedError(RuntimeError):
    """The feed could not be reached or answered with an unusable payload."""


class FeedPayloadError(ValueError):
    """A single feed item could not be turned into an Asset."""


def _parse_price(raw: Any) -> float:
    if raw is None:
        raise FeedPayloadError("missing price")
    text = str(raw).strip().replace(",", "")
    try:
        price = float(text)
    except ValueError as exc:
        raise FeedPayloadError(f"non-numeric price {raw!r}") from exc
    if not math.isfinite(price) or price < 0:
        raise FeedPayloadError(f"invalid price {raw!r}")
    return price


def parse_asset(item: Dict[str, Any]) -> Asset:
    """
    Map one raw feed record onto an Asset.

    The feed keys its fields by display labels ("Symbol", "Current Price",
    "Logo URL") and sends every value as a string.
    """
    if not isinstance(item, dict):
        raise FeedPayloadError(f"expected an object, got {type(item).__name__}")
    symbol = str(item.get("Symbol") or "").strip()
    if not symbol:
        raise FeedPayloadError("missing symbol")
    logo = item.get("Logo URL")
    return Asset(
        symbol=symbol,
        name=str(item.get("Name") or symbol),
        description=str(item.get("Description") or ""),
        price=_parse_price(item.get("Current Price")),
        type=str(item.get("Type") or ""),
        logo=str(logo) if logo else None,
    )


def parse_assets(items: List[Any]) -> List[Asset]:
    assets: List[Asset] = []
    for item in items:
        try:
            assets.append(parse_asset(item))
        except FeedPayloadError as exc:
            logger.warning(f"Skipping malformed feed item: {exc}")
    return assets


class AssetFeedClient:
    """Async client for the asset feed with timeout and retries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
    ) -> None:
        self._base_url = (base_url or settings.STOCKS_API_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.FEED_TIMEOUT_SEC
        self._retries = retries if retries is not None else settings.FEED_RETRIES
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"User-Agent": "wealth_tracker/1.0"},
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch_all(self) -> List[Asset]:
        """Fetch every asset the feed lists."""
        return parse_assets(await self._fetch_items(self._base_url))

    async def fetch_by_type(self, asset_type: str) -> List[Asset]:
        """Fetch the assets of one type from the feed's filtered endpoint."""
        url = f"{self._base_url}/type/{quote(asset_type.strip(), safe='')}"
        return parse_assets(await self._fetch_items(url))

    async def _fetch_items(self, url: str) -> List[Any]:
        client = await self._get_client()
        last_exc: Optional[Exception] = None
        for attempt in range(self._retries + 1):
            try:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
                items = payload.get("data") if isinstance(payload, dict) else None
                if not isinstance(items, list):
                    raise FeedError("feed payload has no data list")
                return items
            except (httpx.HTTPError, ValueError, FeedError) as exc:
                last_exc = exc
                if attempt < self._retries:
                    logger.warning(f"Asset feed request failed, retrying ({attempt + 1}/{self._retries}): {exc}")
                    await asyncio.sleep(0.2 * (attempt + 1))
        raise FeedError(f"asset feed request to {url} failed: {last_exc}")


feed_client = AssetFeedClient()
