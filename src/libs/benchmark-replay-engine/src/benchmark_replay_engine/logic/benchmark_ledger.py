# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/benchmark_ledger.py
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Protocol

from ..constants import BENCHMARK_DIVERGENCE_TOLERANCE
from ..core.models.settings import ReplaySettings
from ..core.models.summaries import BenchmarkSummary, DivergenceAnomaly
from ..exceptions import InvalidConfigurationError, PriceUnavailableError
from ..monitoring import BENCHMARK_DIVERGENCE_ANOMALIES_TOTAL
from .cost_objects import CostLot
from .lot_queue import FIFOLotQueue
from .valuation import summarize_ledger, value_holding

logger = logging.getLogger(__name__)


class DatedPriceLookup(Protocol):
    async def resolve_price(self, instrument_code: str, price_date: date) -> Optional[Decimal]: ...


class BenchmarkLedger:
    """
    Synthetic FIFO ledger that replays the user's cash flows through a single
    benchmark instrument: every buy spends the same cash on the benchmark and
    every sell raises the same cash from it.

    When a sell needs more benchmark than the ledger holds (beyond the
    divergence tolerance) the whole position is liquidated at the day's price,
    a DivergenceAnomaly is recorded and the replay continues from flat. This is
    a modeling approximation: one instrument cannot always absorb a
    diversified portfolio's sells.
    """
    def __init__(self, price_lookup: DatedPriceLookup, settings: Optional[ReplaySettings] = None):
        self._settings = settings or ReplaySettings()
        self._validate_settings(self._settings)
        self._price_lookup = price_lookup
        self._lots = FIFOLotQueue()
        self.total_invested = Decimal(0)
        self.total_proceeds = Decimal(0)
        self.realized_pl = Decimal(0)
        self.consumed_cost = Decimal(0)
        self.anomalies: List[DivergenceAnomaly] = []

    @staticmethod
    def _validate_settings(settings: ReplaySettings):
        if not settings.benchmark_instrument_code:
            raise InvalidConfigurationError("'benchmark_instrument_code' cannot be empty.")
        if settings.shares_per_lot <= 0:
            raise InvalidConfigurationError(f"Invalid 'shares_per_lot': {settings.shares_per_lot}.")
        if settings.commission_rate < 0 or settings.transaction_tax_rate < 0:
            raise InvalidConfigurationError("Commission and transaction tax rates cannot be negative.")
        if settings.commission_rate + settings.transaction_tax_rate >= 1:
            raise InvalidConfigurationError("Commission and transaction tax rates must sum to less than 1.")

    @property
    def instrument_code(self) -> str:
        return self._settings.benchmark_instrument_code

    @property
    def held_quantity(self) -> Decimal:
        return self._lots.total_quantity

    @property
    def open_cost(self) -> Decimal:
        return self._lots.total_cost

    async def _price_per_lot(self, trade_date: date) -> Decimal:
        price = await self._price_lookup.resolve_price(self.instrument_code, trade_date)
        if price is None:
            raise PriceUnavailableError(self.instrument_code, trade_date)
        return price * self._settings.shares_per_lot

    async def process_buy(self, trade_date: date, amount: Decimal) -> CostLot:
        price_per_lot = await self._price_per_lot(trade_date)
        quantity = amount / (price_per_lot * (1 + self._settings.commission_rate))
        lot = CostLot(trade_date, quantity, amount)
        self._lots.add_lot(lot)
        self.total_invested += amount
        return lot

    async def process_sell(self, trade_date: date, amount: Decimal, originating_instrument: str) -> Decimal:
        """
        Raises `amount` of cash from the benchmark position. Returns the cost
        basis released by the sell.
        """
        price_per_lot = await self._price_per_lot(trade_date)
        net_rate = 1 - self._settings.commission_rate - self._settings.transaction_tax_rate
        needed = amount / (price_per_lot * net_rate)
        held = self._lots.total_quantity

        if needed <= held * (1 + BENCHMARK_DIVERGENCE_TOLERANCE):
            consumed_cost, _ = self._lots.consume(needed)
            self.total_proceeds += amount
            self.realized_pl += amount - consumed_cost
            self.consumed_cost += consumed_cost
            return consumed_cost

        # Divergence: liquidate everything that is left and continue from flat
        released_cost, released_quantity = self._lots.drain()
        proceeds = released_quantity * price_per_lot * net_rate
        self.total_proceeds += proceeds
        self.realized_pl += proceeds - released_cost
        self.consumed_cost += released_cost

        anomaly = DivergenceAnomaly(
            trade_date=trade_date,
            originating_instrument=originating_instrument,
            user_sell_amount=amount,
            benchmark_holding_value_at_failure=held * price_per_lot,
            shortfall_amount=(needed - held) * price_per_lot,
            required_quantity_lots=needed,
            held_quantity_lots=held,
            benchmark_price=price_per_lot / self._settings.shares_per_lot,
        )
        self.anomalies.append(anomaly)
        BENCHMARK_DIVERGENCE_ANOMALIES_TOTAL.inc()
        logger.warning(
            f"Benchmark divergence on {trade_date.isoformat()}: selling {amount} of {originating_instrument} "
            f"needs {needed:.4f} lots of {self.instrument_code} but only {held:.4f} are held.",
            extra={"shortfall_amount": str(anomaly.shortfall_amount)}
        )
        return released_cost

    def finalize(self, latest_price: Decimal) -> BenchmarkSummary:
        holdings = []
        if len(self._lots):
            holdings.append(value_holding(
                self.instrument_code,
                self._lots.total_quantity,
                self._lots.total_cost,
                latest_price,
                self._settings.shares_per_lot,
            ))
        return BenchmarkSummary(
            **summarize_ledger(self.total_invested, self.total_proceeds, holdings),
            instrument_code=self.instrument_code,
            latest_price=latest_price,
            anomalies=list(self.anomalies),
        )
