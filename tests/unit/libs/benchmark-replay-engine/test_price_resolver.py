# tests/unit/libs/benchmark-replay-engine/test_price_resolver.py
import asyncio
import json
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from benchmark_replay_engine.exceptions import PriceSourceError, TransientPriceSourceError
from benchmark_replay_engine.pricing.cache import PriceCache
from benchmark_replay_engine.pricing.resolver import PriceResolver
from benchmark_replay_engine.pricing.sources import LocalHistorySource

pytestmark = pytest.mark.asyncio

DAY = date(2024, 1, 2)


async def test_primary_price_is_returned_and_cached(resolver, primary_source, secondary_source):
    primary_source.closes[("2330", DAY)] = Decimal("590")

    assert await resolver.resolve_price("2330", DAY) == Decimal("590")
    assert await resolver.resolve_price("2330", DAY) == Decimal("590")

    assert primary_source.calls == [("close", "2330", DAY)]
    assert secondary_source.calls == []
    assert resolver.cache.get("2330", DAY) == Decimal("590")


async def test_falls_back_to_secondary_when_primary_errors(resolver, primary_source, secondary_source):
    """
    GIVEN a primary source that fails and a secondary that has the quote
    WHEN a dated price is resolved
    THEN the secondary's price is returned without raising.
    """
    primary_source.closes[("2330", DAY)] = PriceSourceError("exchange unavailable")
    secondary_source.closes[("2330", DAY)] = Decimal("588.5")

    assert await resolver.resolve_price("2330", DAY) == Decimal("588.5")
    assert len(primary_source.calls) == 1


async def test_non_positive_price_is_treated_as_missing(resolver, primary_source, secondary_source):
    primary_source.closes[("2330", DAY)] = Decimal(0)
    secondary_source.closes[("2330", DAY)] = Decimal("590")

    assert await resolver.resolve_price("2330", DAY) == Decimal("590")


async def test_exhausted_chain_returns_none(resolver):
    assert await resolver.resolve_price("9999", DAY) is None
    assert await resolver.resolve_latest_price("9999") is None


async def test_transient_errors_are_retried():
    source = MagicMock()
    source.name = "primary"
    source.fetch_close = AsyncMock(side_effect=[TransientPriceSourceError("429"), Decimal("50")])
    resolver = PriceResolver(primary=source, cache=PriceCache(), max_attempts=2, retry_wait=0)

    assert await resolver.resolve_price("0050", DAY) == Decimal("50")
    assert source.fetch_close.await_count == 2


async def test_non_transient_errors_are_not_retried():
    source = MagicMock()
    source.name = "primary"
    source.fetch_close = AsyncMock(side_effect=PriceSourceError("bad symbol"))
    resolver = PriceResolver(primary=source, cache=PriceCache(), max_attempts=3, retry_wait=0)

    assert await resolver.resolve_price("0050", DAY) is None
    assert source.fetch_close.await_count == 1


async def test_hanging_source_times_out_and_falls_back(secondary_source):
    async def hang(instrument_code, price_date):
        await asyncio.sleep(10)

    slow = MagicMock()
    slow.name = "primary"
    slow.fetch_close = hang
    secondary_source.closes[("2330", DAY)] = Decimal("590")
    resolver = PriceResolver(primary=slow, secondary=secondary_source, cache=PriceCache(), lookup_timeout=0.01)

    assert await resolver.resolve_price("2330", DAY) == Decimal("590")


async def test_local_history_serves_benchmark_only_and_is_not_cached(tmp_path, primary_source):
    """
    GIVEN a pre-baked benchmark history file
    WHEN the benchmark and another instrument are priced on the same date
    THEN the benchmark comes from the file and the other from the primary source.
    """
    history = tmp_path / "benchmark-history.json"
    history.write_text(json.dumps({"2024-01-02": 130.5, "bad-date": 1}))
    primary_source.closes[("2330", DAY)] = Decimal("590")
    cache = PriceCache()
    resolver = PriceResolver(
        primary=primary_source,
        local_history=LocalHistorySource("0050", history),
        cache=cache,
        benchmark_instrument_code="0050",
    )

    assert await resolver.resolve_price("0050", DAY) == Decimal("130.5")
    assert await resolver.resolve_price("2330", DAY) == Decimal("590")

    assert primary_source.calls == [("close", "2330", DAY)]
    assert cache.stats()["keys"] == ["price_2330_2024-01-02"]


async def test_missing_local_history_falls_through(tmp_path, primary_source):
    primary_source.closes[("0050", DAY)] = Decimal("131")
    resolver = PriceResolver(
        primary=primary_source,
        local_history=LocalHistorySource("0050", tmp_path / "missing.json"),
        cache=PriceCache(),
        benchmark_instrument_code="0050",
    )

    assert await resolver.resolve_price("0050", DAY) == Decimal("131")


async def test_latest_price_prefers_primary_then_secondary(resolver, primary_source, secondary_source):
    primary_source.latest["2330"] = Decimal("600")
    secondary_source.latest["2317"] = Decimal("105")

    assert await resolver.resolve_latest_price("2330") == Decimal("600")
    assert await resolver.resolve_latest_price("2317") == Decimal("105")
    assert ("latest", "2330") not in secondary_source.calls


async def test_batch_isolates_failures_deduplicates_and_throttles(primary_source):
    """
    GIVEN five distinct instruments (one repeated) and a group size of 2
    WHEN latest prices are resolved in batch
    THEN a failing instrument maps to None, each instrument is looked up once
    AND the resolver pauses between the three groups.
    """
    primary_source.latest.update({
        "2330": Decimal("600"),
        "2317": TransientPriceSourceError("rate limited"),
        "2454": Decimal("1100"),
        "0050": Decimal("150"),
        "2412": Decimal("120"),
    })
    resolver = PriceResolver(primary=primary_source, cache=PriceCache(), max_attempts=1,
                             batch_size=2, batch_delay=0.25)

    with patch("benchmark_replay_engine.pricing.resolver.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        prices = await resolver.resolve_batch_latest(["2330", "2317", "2454", "2330", "0050", "2412"])

    assert prices == {
        "2330": Decimal("600"),
        "2317": None,
        "2454": Decimal("1100"),
        "0050": Decimal("150"),
        "2412": Decimal("120"),
    }
    assert len(primary_source.calls) == 5
    assert mock_sleep.await_count == 2
    mock_sleep.assert_awaited_with(0.25)


async def test_empty_batch_returns_empty_mapping(resolver):
    assert await resolver.resolve_batch_latest([]) == {}
