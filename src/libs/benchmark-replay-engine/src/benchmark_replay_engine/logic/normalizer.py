# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/normalizer.py
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable

from ..constants import HOLDINGS_OVERSELL_TOLERANCE_LOTS
from ..core.enums import IssueCode, TransactionKind
from ..core.models.issues import NormalizationResult
from ..core.models.summaries import DateRange, TransactionSummary
from ..core.models.transaction import Transaction
from .issue_reporter import IssueReporter
from .parser import TransactionParser
from .sorter import TransactionSorter

logger = logging.getLogger(__name__)


class TransactionNormalizer:
    """
    Turns a raw transaction feed into a deduplicated, date-ordered batch and a
    list of issues. Oversells are reported as warnings; malformed records
    reject the whole batch.
    """
    def __init__(self, parser: TransactionParser, sorter: TransactionSorter, issue_reporter: IssueReporter):
        self._parser = parser
        self._sorter = sorter
        self._issue_reporter = issue_reporter

    def normalize(self, raw_transactions: Iterable[Any]) -> NormalizationResult:
        self._issue_reporter.clear()

        # 1. Parse; malformed records are reported as hard errors
        parsed = self._parser.parse_transactions(raw_transactions)

        # 2. Deduplicate
        unique_transactions, duplicate_count = self._deduplicate(parsed)

        # 3. Sort by trade date
        ordered = self._sorter.sort_transactions(unique_transactions)

        # 4. Replay against running holdings to flag oversells
        self._flag_oversells(ordered)

        issues = self._issue_reporter.get_issues()
        if self._issue_reporter.has_errors():
            logger.warning(
                "Transaction batch rejected.",
                extra={"error_count": sum(1 for issue in issues if issue.is_error)}
            )
            ordered = []

        logger.info(
            "Normalized transaction batch.",
            extra={"accepted": len(ordered), "duplicates": duplicate_count, "issues": len(issues)}
        )
        return NormalizationResult(transactions=ordered, duplicate_count=duplicate_count, issues=issues)

    def _deduplicate(self, transactions: list[Transaction]) -> tuple[list[Transaction], int]:
        seen = set()
        unique: list[Transaction] = []
        duplicate_count = 0
        for txn in transactions:
            key = txn.dedup_key
            if key in seen:
                duplicate_count += 1
                continue
            seen.add(key)
            unique.append(txn)
        return unique, duplicate_count

    def _flag_oversells(self, ordered: list[Transaction]):
        holdings: dict[str, Decimal] = defaultdict(Decimal)
        for txn in ordered:
            if txn.kind == TransactionKind.BUY:
                holdings[txn.instrument_code] += txn.quantity_lots
                continue

            held = holdings[txn.instrument_code]
            if txn.quantity_lots > held + HOLDINGS_OVERSELL_TOLERANCE_LOTS:
                message = (
                    f"{txn.trade_date.isoformat()} sell of {txn.quantity_lots} lots of "
                    f"{txn.instrument_code} exceeds tracked holdings of {held} lots"
                )
                logger.warning(message)
                self._issue_reporter.add_warning(
                    IssueCode.INSUFFICIENT_HOLDINGS,
                    message,
                    transaction_id=txn.id,
                    source_row_ref=txn.source_row_ref,
                    instrument_code=txn.instrument_code,
                )
            holdings[txn.instrument_code] = max(Decimal(0), held - txn.quantity_lots)

    def summarize(self, transactions: list[Transaction]) -> TransactionSummary:
        """Headline statistics for a normalized batch."""
        if not transactions:
            return TransactionSummary()

        buys = [txn for txn in transactions if txn.kind == TransactionKind.BUY]
        trade_dates = [txn.trade_date for txn in transactions]
        return TransactionSummary(
            total=len(transactions),
            buy_count=len(buys),
            sell_count=len(transactions) - len(buys),
            unique_instruments=len({txn.instrument_code for txn in transactions}),
            date_range=DateRange(start=min(trade_dates), end=max(trade_dates)),
            total_invested=sum((txn.gross_amount for txn in buys), Decimal(0)),
            total_fees=sum((txn.fee for txn in transactions), Decimal(0)),
            total_tax=sum((txn.tax for txn in transactions), Decimal(0)),
        )
