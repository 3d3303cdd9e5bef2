from __future__ import annotations

import asyncio

import pytest

from conftest import FakeFeed, raw_asset
from wealth_tracker.assets import AssetPriceCache


@pytest.mark.asyncio
async def test_get_all_within_window_does_not_refetch(cache, feed, clock):
    first = await cache.get_all()
    assert len(first) == 3
    assert feed.calls == 1

    clock.advance(299)
    second = await cache.get_all()
    assert [a.symbol for a in second] == [a.symbol for a in first]
    assert feed.calls == 1


@pytest.mark.asyncio
async def test_get_all_after_window_refetches_once(cache, feed, clock):
    await cache.get_all()
    clock.advance(300)

    await cache.get_all()
    assert feed.calls == 2
    await cache.get_all()
    assert feed.calls == 2


@pytest.mark.asyncio
async def test_refresh_replaces_instead_of_merging(cache, feed):
    await cache.get_all()
    feed.items = [raw_asset("MSFT", "370")]

    assert await cache.refresh() is True
    assert [a.symbol for a in await cache.get_all()] == ["MSFT"]
    assert await cache.get_by_symbol("AAPL") is None


@pytest.mark.asyncio
async def test_failed_refresh_keeps_stale_cache(clock):
    feed = FakeFeed([raw_asset(s, "10") for s in ("AAPL", "TSLA", "ETH", "BTC")])
    cache = AssetPriceCache(feed, ttl_sec=300, clock=clock)
    before = await cache.get_all()

    feed.fail = True
    clock.advance(3600)
    assert await cache.refresh() is False

    after = await cache.get_all()
    assert len(after) == 4
    assert after == before
    assert cache.stats()["fresh"] is False


@pytest.mark.asyncio
async def test_failed_refresh_without_cache_returns_empty(cache, feed):
    feed.fail = True
    assert await cache.get_all() == []
    assert await cache.get_by_symbol("AAPL") is None
    assert await cache.get_current_price("AAPL") == 0.0


@pytest.mark.asyncio
async def test_empty_feed_is_not_treated_as_fresh(clock):
    feed = FakeFeed([])
    cache = AssetPriceCache(feed, ttl_sec=300, clock=clock)

    assert await cache.get_all() == []
    assert await cache.get_all() == []
    assert feed.calls == 2


@pytest.mark.asyncio
async def test_get_by_symbol_is_case_insensitive(cache):
    asset = await cache.get_by_symbol("  aapl ")
    assert asset is not None
    assert asset.symbol == "AAPL"
    assert asset.name == "Apple Inc."


@pytest.mark.asyncio
async def test_unknown_symbol_is_not_found_not_error(cache, feed):
    assert await cache.get_by_symbol("NOPE") is None
    assert await cache.get_price("NOPE") is None
    assert await cache.get_current_price("NOPE") == 0.0
    assert feed.calls == 1


@pytest.mark.asyncio
async def test_current_price(cache):
    assert await cache.get_price("tsla") == 80.0
    assert await cache.get_current_price("ETH") == 2500.0


@pytest.mark.asyncio
async def test_blank_search_is_capped_at_twenty(clock):
    feed = FakeFeed([raw_asset(f"SYM{i:02d}", i) for i in range(25)])
    cache = AssetPriceCache(feed, ttl_sec=300, search_limit=20, clock=clock)

    assert len(await cache.search("")) == 20
    assert len(await cache.search("   ")) == 20
    assert len(await cache.search(None)) == 20


@pytest.mark.asyncio
async def test_search_matches_symbol_or_name(cache):
    assert [a.symbol for a in await cache.search("aap")] == ["AAPL"]
    assert [a.symbol for a in await cache.search("tesla")] == ["TSLA"]
    assert await cache.search("zzz") == []


@pytest.mark.asyncio
async def test_get_by_type_bypasses_cache(cache, feed):
    assets = await cache.get_by_type("Cryptocurrency")
    assert [a.symbol for a in assets] == ["ETH"]
    assert feed.type_calls == ["Cryptocurrency"]
    assert feed.calls == 0
    assert cache.stats()["assets_cached"] == 0


@pytest.mark.asyncio
async def test_get_by_type_returns_empty_on_failure(cache, feed):
    feed.fail = True
    assert await cache.get_by_type("Technology") == []


@pytest.mark.asyncio
async def test_concurrent_stale_reads_share_one_refresh(cache, feed):
    results = await asyncio.gather(*(cache.get_price("AAPL") for _ in range(10)))
    assert results == [150.0] * 10
    assert feed.calls == 1


@pytest.mark.asyncio
async def test_clear_drops_snapshot(cache, feed):
    await cache.get_all()
    cache.clear()
    assert cache.stats() == {"assets_cached": 0, "refreshed_at": None, "fresh": False}
    await cache.get_all()
    assert feed.calls == 2


@pytest.mark.asyncio
async def test_concurrent_reads_during_outage_share_one_failed_refresh(clock):
    feed = FakeFeed([raw_asset("AAPL", "150")])
    cache = AssetPriceCache(feed, ttl_sec=300, clock=clock)
    feed.fail = True
    feed.delay = 0.05

    results = await asyncio.gather(*(cache.get_current_price("AAPL") for _ in range(10)))
    assert results == [0.0] * 10
    assert feed.calls == 1

    # the next read after the burst tries the feed again
    await cache.get_all()
    assert feed.calls == 2
