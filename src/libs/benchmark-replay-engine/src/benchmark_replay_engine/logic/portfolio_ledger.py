# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/portfolio_ledger.py
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Mapping, Optional

from .. import config
from ..constants import LOT_QUANTITY_EPSILON
from ..core.models.summaries import PerformanceSummary
from .cost_objects import CostLot
from .lot_queue import FIFOLotQueue
from .valuation import summarize_ledger, value_holding

logger = logging.getLogger(__name__)


class PortfolioLedger:
    """
    FIFO lot ledger of the user's real holdings, one lot queue per instrument.
    """
    def __init__(self, shares_per_lot: int = config.SHARES_PER_LOT):
        self._shares_per_lot = shares_per_lot
        self._open_lots: Dict[str, FIFOLotQueue] = {}
        self.total_invested = Decimal(0)
        self.total_proceeds = Decimal(0)
        self.consumed_cost = Decimal(0)

    def buy(self, instrument_code: str, quantity_lots: Decimal, trade_date: date, total_cost: Decimal,
            transaction_id: Optional[str] = None) -> CostLot:
        lot = CostLot(trade_date, quantity_lots, total_cost, transaction_id=transaction_id)
        self._open_lots.setdefault(instrument_code, FIFOLotQueue()).add_lot(lot)
        self.total_invested += total_cost
        return lot

    def sell(self, instrument_code: str, quantity_lots: Decimal, proceeds: Decimal) -> Decimal:
        """
        Consumes open lots oldest first and returns the cost released. Running
        out of lots is logged and the remainder is ignored.
        """
        self.total_proceeds += proceeds

        lots = self._open_lots.get(instrument_code)
        if lots is None:
            logger.warning(f"Sell of {quantity_lots} lots of {instrument_code} has no open lots to consume.")
            return Decimal(0)

        consumed_cost, consumed_quantity = lots.consume(quantity_lots)
        unmatched = quantity_lots - consumed_quantity
        if unmatched > LOT_QUANTITY_EPSILON:
            logger.warning(f"Open lots of {instrument_code} ran out with {unmatched} lots still to sell.")

        if not lots:
            del self._open_lots[instrument_code]

        self.consumed_cost += consumed_cost
        return consumed_cost

    def current_holdings(self) -> Dict[str, Dict[str, Decimal]]:
        """Aggregate quantity, per-share average cost and total cost of each open position."""
        holdings = {}
        for instrument_code, lots in self._open_lots.items():
            quantity = lots.total_quantity
            total_cost = lots.total_cost
            shares = quantity * self._shares_per_lot
            holdings[instrument_code] = {
                "quantity_lots": quantity,
                "average_cost_per_share": total_cost / shares if shares else Decimal(0),
                "total_cost": total_cost,
            }
        return holdings

    @property
    def open_cost(self) -> Decimal:
        return sum((lots.total_cost for lots in self._open_lots.values()), Decimal(0))

    def finalize(self, latest_prices: Mapping[str, Optional[Decimal]]) -> PerformanceSummary:
        snapshots = [
            value_holding(
                instrument_code,
                holding["quantity_lots"],
                holding["total_cost"],
                latest_prices.get(instrument_code),
                self._shares_per_lot,
            )
            for instrument_code, holding in self.current_holdings().items()
        ]
        unpriced = [snapshot.instrument_code for snapshot in snapshots if snapshot.price_is_fallback]
        if unpriced:
            logger.warning(f"No latest price for {', '.join(unpriced)}; valued at average cost.")
        return PerformanceSummary(**summarize_ledger(self.total_invested, self.total_proceeds, snapshots))
