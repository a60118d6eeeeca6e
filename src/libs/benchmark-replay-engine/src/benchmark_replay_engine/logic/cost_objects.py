# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/cost_objects.py
from datetime import date
from decimal import Decimal
from typing import Optional


class CostLot:
    """
    Represents a single 'lot' of an instrument acquired through one buy.
    Partial consumption shrinks quantity and cost by the same proportion.
    """
    def __init__(self, trade_date: date, quantity_lots: Decimal, total_cost: Decimal, transaction_id: Optional[str] = None):
        self.transaction_id = transaction_id
        self.trade_date = trade_date
        self.original_quantity = quantity_lots
        self.remaining_quantity = quantity_lots
        self.remaining_cost = total_cost
        self.cost_per_lot = total_cost / quantity_lots if quantity_lots else Decimal(0)

    def cost_per_share(self, shares_per_lot: int) -> Decimal:
        return self.cost_per_lot / shares_per_lot

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= 0

    def consume(self, quantity_lots: Decimal) -> Decimal:
        """
        Removes up to `quantity_lots` from the lot and returns the cost released.
        Consuming the whole remainder releases exactly the remaining cost.
        """
        if quantity_lots >= self.remaining_quantity:
            released = self.remaining_cost
            self.remaining_quantity = Decimal(0)
            self.remaining_cost = Decimal(0)
            return released

        released = self.remaining_cost * quantity_lots / self.remaining_quantity
        self.remaining_quantity -= quantity_lots
        self.remaining_cost -= released
        return released

    def __repr__(self) -> str:
        return (f"CostLot(date='{self.trade_date}', "
                f"rem_qty={self.remaining_quantity:.4f}, "
                f"rem_cost={self.remaining_cost:.2f})")
