# tests/unit/libs/benchmark-replay-engine/conftest.py
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

import pytest

from benchmark_replay_engine.core.models.settings import ReplaySettings
from benchmark_replay_engine.core.models.transaction import Transaction
from benchmark_replay_engine.pricing.cache import PriceCache
from benchmark_replay_engine.pricing.resolver import PriceResolver

PriceOrError = Union[Decimal, Exception, None]


class FakePriceSource:
    """In-memory PriceSource that records every lookup it receives."""
    def __init__(
        self,
        name: str,
        closes: Optional[Dict[Tuple[str, date], PriceOrError]] = None,
        latest: Optional[Dict[str, PriceOrError]] = None,
    ):
        self.name = name
        self.closes = closes or {}
        self.latest = latest or {}
        self.calls = []

    async def fetch_close(self, instrument_code: str, price_date: date) -> Optional[Decimal]:
        self.calls.append(("close", instrument_code, price_date))
        return self._answer(self.closes.get((instrument_code, price_date)))

    async def fetch_latest(self, instrument_code: str) -> Optional[Decimal]:
        self.calls.append(("latest", instrument_code))
        return self._answer(self.latest.get(instrument_code))

    @staticmethod
    def _answer(value: PriceOrError) -> Optional[Decimal]:
        if isinstance(value, Exception):
            raise value
        return value


def make_transaction(
    instrument_code: str,
    kind: str,
    trade_date: date,
    quantity_lots: str,
    gross_amount: str,
    **kwargs,
) -> Transaction:
    return Transaction(
        instrument_code=instrument_code,
        kind=kind,
        trade_date=trade_date,
        quantity_lots=Decimal(quantity_lots),
        gross_amount=Decimal(gross_amount),
        **kwargs,
    )


@pytest.fixture
def zero_cost_settings() -> ReplaySettings:
    """Benchmark settings with no commission or tax, so expected values are exact."""
    return ReplaySettings(
        benchmark_instrument_code="0050",
        commission_rate=Decimal(0),
        transaction_tax_rate=Decimal(0),
        shares_per_lot=1000,
    )


@pytest.fixture
def primary_source() -> FakePriceSource:
    return FakePriceSource("primary")


@pytest.fixture
def secondary_source() -> FakePriceSource:
    return FakePriceSource("secondary")


@pytest.fixture
def resolver(primary_source: FakePriceSource, secondary_source: FakePriceSource) -> PriceResolver:
    """A resolver over fake sources with retries and throttling made instant."""
    return PriceResolver(
        primary=primary_source,
        secondary=secondary_source,
        cache=PriceCache(),
        benchmark_instrument_code="0050",
        lookup_timeout=1.0,
        max_attempts=2,
        retry_wait=0,
        batch_size=5,
        batch_delay=0,
    )


@pytest.fixture
def transaction_factory():
    """Builds validated Transactions from terse arguments."""
    return make_transaction
