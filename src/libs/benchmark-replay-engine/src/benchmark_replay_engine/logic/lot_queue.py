# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/lot_queue.py
from collections import deque
from decimal import Decimal
from typing import Deque, Iterator, Tuple

from ..constants import LOT_QUANTITY_EPSILON
from .cost_objects import CostLot


class FIFOLotQueue:
    """
    The open lots of one instrument, oldest first. Sells consume from the front.
    """
    def __init__(self):
        self._lots: Deque[CostLot] = deque()

    def add_lot(self, lot: CostLot):
        if lot.remaining_quantity <= 0:
            return
        self._lots.append(lot)

    def consume(self, quantity_lots: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Consumes lots oldest first until `quantity_lots` is satisfied or the
        queue runs dry. Returns (consumed_cost, consumed_quantity).
        """
        required_quantity = quantity_lots
        consumed_cost = Decimal(0)
        consumed_quantity = Decimal(0)

        while required_quantity > LOT_QUANTITY_EPSILON and self._lots:
            current_lot = self._lots[0]
            take = min(required_quantity, current_lot.remaining_quantity)
            consumed_cost += current_lot.consume(take)
            consumed_quantity += take
            required_quantity -= take

            if current_lot.is_exhausted:
                self._lots.popleft()

        return consumed_cost, consumed_quantity

    def drain(self) -> Tuple[Decimal, Decimal]:
        """Closes every open lot. Returns (released_cost, released_quantity)."""
        released_cost = self.total_cost
        released_quantity = self.total_quantity
        self._lots.clear()
        return released_cost, released_quantity

    @property
    def total_quantity(self) -> Decimal:
        return sum((lot.remaining_quantity for lot in self._lots), Decimal(0))

    @property
    def total_cost(self) -> Decimal:
        return sum((lot.remaining_cost for lot in self._lots), Decimal(0))

    def __len__(self) -> int:
        return len(self._lots)

    def __iter__(self) -> Iterator[CostLot]:
        return iter(self._lots)
