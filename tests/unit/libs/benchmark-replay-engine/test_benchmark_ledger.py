# tests/unit/libs/benchmark-replay-engine/test_benchmark_ledger.py
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from benchmark_replay_engine.core.models.settings import ReplaySettings
from benchmark_replay_engine.exceptions import InvalidConfigurationError, PriceUnavailableError
from benchmark_replay_engine.logic.benchmark_ledger import BenchmarkLedger

pytestmark = pytest.mark.asyncio


def price_lookup(prices: dict) -> MagicMock:
    lookup = MagicMock()
    lookup.resolve_price = AsyncMock(side_effect=lambda code, day: prices.get(day))
    return lookup


async def test_buy_and_hold_matches_benchmark_appreciation(zero_cost_settings: ReplaySettings):
    """
    GIVEN a 100,000 buy replayed at a benchmark price of 50
    WHEN the ledger is finalized at a latest price of 60
    THEN unrealized P&L is 20,000 and the return rate is 20%.
    """
    ledger = BenchmarkLedger(price_lookup({date(2024, 1, 2): Decimal("50")}), zero_cost_settings)

    lot = await ledger.process_buy(date(2024, 1, 2), Decimal("100000"))
    summary = ledger.finalize(Decimal("60"))

    assert lot.remaining_quantity == Decimal("2")
    assert summary.unrealized_pl == Decimal("20000")
    assert summary.return_rate == Decimal("20")
    assert summary.instrument_code == "0050"
    assert summary.anomalies == []


async def test_buy_quantity_is_net_of_commission():
    settings = ReplaySettings(benchmark_instrument_code="0050", commission_rate=Decimal("0.001425"),
                              transaction_tax_rate=Decimal("0.003"), shares_per_lot=1000)
    ledger = BenchmarkLedger(price_lookup({date(2024, 1, 2): Decimal("100")}), settings)

    lot = await ledger.process_buy(date(2024, 1, 2), Decimal("100142.5"))

    assert lot.remaining_quantity == Decimal("1")


async def test_sell_consumes_fifo_and_realizes_gain(zero_cost_settings: ReplaySettings):
    prices = {date(2024, 1, 2): Decimal("50"), date(2024, 6, 3): Decimal("70")}
    ledger = BenchmarkLedger(price_lookup(prices), zero_cost_settings)

    await ledger.process_buy(date(2024, 1, 2), Decimal("100000"))
    consumed = await ledger.process_sell(date(2024, 6, 3), Decimal("70000"), "2330")

    assert consumed == Decimal("50000")
    assert ledger.realized_pl == Decimal("20000")
    assert ledger.open_cost == Decimal("50000")
    assert ledger.anomalies == []


async def test_sell_with_nothing_held_records_anomaly(zero_cost_settings: ReplaySettings):
    """
    GIVEN an empty benchmark ledger
    WHEN a sell needing 10 lots is replayed
    THEN one anomaly records a shortfall worth 10 lots and the ledger stays empty.
    """
    ledger = BenchmarkLedger(price_lookup({date(2024, 3, 1): Decimal("50")}), zero_cost_settings)

    await ledger.process_sell(date(2024, 3, 1), Decimal("500000"), "2330")

    assert len(ledger.anomalies) == 1
    anomaly = ledger.anomalies[0]
    assert anomaly.shortfall_amount == Decimal("500000")
    assert anomaly.required_quantity_lots == Decimal("10")
    assert anomaly.held_quantity_lots == Decimal(0)
    assert anomaly.benchmark_holding_value_at_failure == Decimal(0)
    assert anomaly.originating_instrument == "2330"
    assert ledger.held_quantity == Decimal(0)


async def test_divergence_liquidates_everything_and_continues(zero_cost_settings: ReplaySettings):
    prices = {
        date(2024, 1, 2): Decimal("50"),
        date(2024, 2, 1): Decimal("60"),
        date(2024, 3, 1): Decimal("55"),
    }
    ledger = BenchmarkLedger(price_lookup(prices), zero_cost_settings)

    await ledger.process_buy(date(2024, 1, 2), Decimal("100000"))
    released = await ledger.process_sell(date(2024, 2, 1), Decimal("300000"), "2454")

    assert released == Decimal("100000")
    assert ledger.held_quantity == Decimal(0)
    anomaly = ledger.anomalies[0]
    assert anomaly.benchmark_holding_value_at_failure == Decimal("120000")
    assert anomaly.shortfall_amount == Decimal("180000")
    assert ledger.total_proceeds == Decimal("120000")
    assert ledger.realized_pl == Decimal("20000")

    await ledger.process_buy(date(2024, 3, 1), Decimal("55000"))
    summary = ledger.finalize(Decimal("55"))

    assert summary.holdings[0].quantity_lots == Decimal("1")
    assert summary.realized_pl == Decimal("20000")
    assert len(summary.anomalies) == 1


async def test_sell_within_divergence_tolerance_is_not_an_anomaly(zero_cost_settings: ReplaySettings):
    prices = {date(2024, 1, 2): Decimal("50"), date(2024, 2, 1): Decimal("50")}
    ledger = BenchmarkLedger(price_lookup(prices), zero_cost_settings)

    await ledger.process_buy(date(2024, 1, 2), Decimal("100000"))
    await ledger.process_sell(date(2024, 2, 1), Decimal("100050"), "2330")

    assert ledger.anomalies == []
    assert ledger.held_quantity == Decimal(0)


async def test_unresolvable_price_raises(zero_cost_settings: ReplaySettings):
    ledger = BenchmarkLedger(price_lookup({}), zero_cost_settings)

    with pytest.raises(PriceUnavailableError) as exc_info:
        await ledger.process_buy(date(2024, 1, 2), Decimal("100000"))

    assert exc_info.value.instrument_code == "0050"
    assert exc_info.value.price_date == date(2024, 1, 2)
    assert "2024-01-02" in str(exc_info.value)


@pytest.mark.parametrize("overrides", [
    {"commission_rate": Decimal("-0.1")},
    {"commission_rate": Decimal("0.6"), "transaction_tax_rate": Decimal("0.5")},
    {"shares_per_lot": 0},
    {"benchmark_instrument_code": ""},
])
async def test_invalid_settings_are_rejected(overrides):
    settings = ReplaySettings(**overrides)
    with pytest.raises(InvalidConfigurationError):
        BenchmarkLedger(price_lookup({}), settings)


async def test_cost_is_conserved_across_divergence_and_rebuy():
    """
    GIVEN a ledger charging commission and tax
    WHEN it replays a buy, a covered sell, a divergence liquidation and a rebuy
    THEN invested cost always equals consumed cost plus open cost.
    """
    settings = ReplaySettings(benchmark_instrument_code="0050", commission_rate=Decimal("0.001425"),
                              transaction_tax_rate=Decimal("0.003"), shares_per_lot=1000)
    prices = {
        date(2024, 1, 2): Decimal("50"),
        date(2024, 2, 1): Decimal("61.3"),
        date(2024, 3, 1): Decimal("58.7"),
        date(2024, 4, 1): Decimal("55.1"),
    }
    ledger = BenchmarkLedger(price_lookup(prices), settings)

    def imbalance() -> Decimal:
        return abs(ledger.total_invested - ledger.consumed_cost - ledger.open_cost)

    await ledger.process_buy(date(2024, 1, 2), Decimal("150000"))
    assert imbalance() < Decimal("0.000001")

    await ledger.process_sell(date(2024, 2, 1), Decimal("61000"), "2330")
    assert ledger.anomalies == []
    assert imbalance() < Decimal("0.000001")

    await ledger.process_sell(date(2024, 3, 1), Decimal("400000"), "2454")
    assert len(ledger.anomalies) == 1
    assert ledger.open_cost == Decimal(0)
    assert imbalance() < Decimal("0.000001")

    await ledger.process_buy(date(2024, 4, 1), Decimal("80000"))
    assert ledger.total_invested == Decimal("230000")
    assert imbalance() < Decimal("0.000001")
