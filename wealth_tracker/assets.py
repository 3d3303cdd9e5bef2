"""
Asset snapshot cache in front of the price feed.

The whole asset list is fetched in one call and kept as an immutable
snapshot. Reads are served from the snapshot while it is younger than the
staleness window; after that the next read refreshes it. When a refresh
fails the previous snapshot, however old, keeps being served.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from .clients import AssetFeedClient, FeedError, feed_client
from .models import Asset
from .settings import settings


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AssetSnapshot:
    assets: Mapping[str, Asset]
    refreshed_at: datetime

    @classmethod
    def build(cls, assets: List[Asset], refreshed_at: datetime) -> "AssetSnapshot":
        mapping: Dict[str, Asset] = {}
        for asset in assets:
            mapping[asset.symbol.upper()] = asset
        return cls(assets=MappingProxyType(mapping), refreshed_at=refreshed_at)


class AssetPriceCache:
    """Cached view of the asset feed with stale fallback."""

    def __init__(
        self,
        feed: AssetFeedClient | None = None,
        *,
        ttl_sec: Optional[float] = None,
        search_limit: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.feed = feed or feed_client
        self._ttl = timedelta(seconds=ttl_sec if ttl_sec is not None else settings.ASSET_CACHE_TTL_SEC)
        self._search_limit = search_limit if search_limit is not None else settings.SEARCH_DEFAULT_LIMIT
        self._clock = clock
        self._snapshot: Optional[AssetSnapshot] = None
        self._refresh_lock = asyncio.Lock()
        self._attempts = 0

    # ------------------------------------------------------------------ utilities

    def _is_fresh(self, snapshot: Optional[AssetSnapshot]) -> bool:
        if snapshot is None or not snapshot.assets:
            return False
        return self._clock() - snapshot.refreshed_at < self._ttl

    async def _current(self) -> Optional[AssetSnapshot]:
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            logger.debug("Asset cache hit")
            return snapshot
        attempts_seen = self._attempts
        async with self._refresh_lock:
            # Another caller may have refreshed while this one waited.
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return snapshot
            # A refresh that failed while this caller waited is not repeated.
            if self._attempts != attempts_seen:
                return snapshot
            if not await self.refresh() and self._snapshot is not None:
                logger.warning(
                    f"Serving stale asset cache from {self._snapshot.refreshed_at.isoformat()} "
                    f"({len(self._snapshot.assets)} assets)"
                )
            return self._snapshot

    def clear(self) -> None:
        self._snapshot = None
        logger.info("Asset cache cleared")

    def stats(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        return {
            "assets_cached": len(snapshot.assets) if snapshot else 0,
            "refreshed_at": snapshot.refreshed_at.isoformat() if snapshot else None,
            "fresh": self._is_fresh(snapshot),
        }

    # -------------------------------------------------------------------- refresh

    async def refresh(self) -> bool:
        """
        Replace the cached snapshot with a fresh copy of the feed.

        Returns False, leaving the current snapshot in place, when the feed
        cannot be read.
        """
        try:
            assets = await self.feed.fetch_all()
        except FeedError as exc:
            logger.error(f"Failed to fetch assets from feed: {exc}")
            return False
        finally:
            self._attempts += 1
        self._snapshot = AssetSnapshot.build(assets, self._clock())
        logger.info(f"Asset cache refreshed with {len(assets)} assets")
        return True

    # ---------------------------------------------------------------------- reads

    async def get_all(self) -> List[Asset]:
        """All cached assets. An empty list means the feed is unavailable."""
        snapshot = await self._current()
        return list(snapshot.assets.values()) if snapshot else []

    async def get_by_symbol(self, symbol: str) -> Optional[Asset]:
        snapshot = await self._current()
        if snapshot is None:
            return None
        return snapshot.assets.get(symbol.strip().upper())

    async def get_price(self, symbol: str) -> Optional[float]:
        asset = await self.get_by_symbol(symbol)
        return asset.price if asset else None

    async def get_current_price(self, symbol: str) -> float:
        """Price of ``symbol``, or 0.0 when it is unknown."""
        price = await self.get_price(symbol)
        return price if price is not None else 0.0

    async def search(self, query: Optional[str], limit: Optional[int] = None) -> List[Asset]:
        assets = await self.get_all()
        needle = (query or "").strip().lower()
        if not needle:
            return assets[: limit or self._search_limit]
        return [a for a in assets if needle in a.symbol.lower() or needle in a.name.lower()]

    async def get_by_type(self, asset_type: str) -> List[Asset]:
        """Live fetch of one asset type; the cache is neither read nor written."""
        try:
            return await self.feed.fetch_by_type(asset_type)
        except FeedError as exc:
            logger.error(f"Failed to fetch assets by type {asset_type}: {exc}")
            return []


asset_cache = AssetPriceCache()
