# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/sorter.py
from ..core.models.transaction import Transaction


class TransactionSorter:
    """
    Orders transactions for replay.
    """
    def sort_transactions(self, transactions: list[Transaction]) -> list[Transaction]:
        """
        Sorts by trade_date ascending. The sort is stable, so same-date
        transactions keep their input order.
        """
        return sorted(transactions, key=lambda txn: txn.trade_date)
