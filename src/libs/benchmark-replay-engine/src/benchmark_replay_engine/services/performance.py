# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/services/performance.py
import logging
from typing import Any, Iterable, Optional

from .. import config
from ..constants import LEDGER_BENCHMARK, LEDGER_PORTFOLIO
from ..core.enums import TransactionKind
from ..core.models.issues import NormalizationResult
from ..core.models.settings import ReplaySettings
from ..core.models.summaries import BenchmarkSummary, PerformanceSummary
from ..core.models.transaction import Transaction
from ..exceptions import PriceUnavailableError
from ..logic.benchmark_ledger import BenchmarkLedger
from ..logic.issue_reporter import IssueReporter
from ..logic.normalizer import TransactionNormalizer
from ..logic.parser import TransactionParser
from ..logic.portfolio_ledger import PortfolioLedger
from ..logic.sorter import TransactionSorter
from ..monitoring import LEDGER_REPLAY_DEPTH, ledger_replay_timer
from ..pricing.resolver import PriceResolver

logger = logging.getLogger(__name__)


def build_normalizer() -> TransactionNormalizer:
    """Provides a TransactionNormalizer wired with its default collaborators."""
    issue_reporter = IssueReporter()
    return TransactionNormalizer(
        parser=TransactionParser(issue_reporter=issue_reporter),
        sorter=TransactionSorter(),
        issue_reporter=issue_reporter,
    )


def normalize_transactions(raw_transactions: Iterable[Any]) -> NormalizationResult:
    return build_normalizer().normalize(raw_transactions)


async def compute_portfolio_performance(
    transactions: list[Transaction],
    resolver: PriceResolver,
    shares_per_lot: int = config.SHARES_PER_LOT,
) -> PerformanceSummary:
    """
    Replays normalized transactions through a fresh FIFO ledger and values the
    open positions at their latest prices. Positions without a latest price
    are valued at average cost and listed in `unpriced_instruments`.
    """
    ledger = PortfolioLedger(shares_per_lot=shares_per_lot)
    LEDGER_REPLAY_DEPTH.labels(LEDGER_PORTFOLIO).observe(len(transactions))

    with ledger_replay_timer(LEDGER_PORTFOLIO):
        for txn in transactions:
            if txn.kind == TransactionKind.BUY:
                ledger.buy(txn.instrument_code, txn.quantity_lots, txn.trade_date, txn.gross_amount, transaction_id=txn.id)
            else:
                ledger.sell(txn.instrument_code, txn.quantity_lots, txn.gross_amount)

        latest_prices = await resolver.resolve_batch_latest(ledger.current_holdings().keys())
        summary = ledger.finalize(latest_prices)

    logger.info(
        f"Portfolio replay complete: return {summary.return_rate:.2f}% over {len(transactions)} transactions."
    )
    return summary


async def compute_benchmark_performance(
    transactions: list[Transaction],
    resolver: PriceResolver,
    settings: Optional[ReplaySettings] = None,
) -> BenchmarkSummary:
    """
    Replays the same cash flows through the benchmark instrument. Raises
    PriceUnavailableError when any required benchmark price cannot be resolved.
    """
    ledger = BenchmarkLedger(resolver, settings)
    LEDGER_REPLAY_DEPTH.labels(LEDGER_BENCHMARK).observe(len(transactions))

    with ledger_replay_timer(LEDGER_BENCHMARK):
        for txn in transactions:
            if txn.kind == TransactionKind.BUY:
                await ledger.process_buy(txn.trade_date, txn.gross_amount)
            else:
                await ledger.process_sell(txn.trade_date, txn.gross_amount, txn.instrument_code)

        latest_price = await resolver.resolve_latest_price(ledger.instrument_code)
        if latest_price is None:
            raise PriceUnavailableError(ledger.instrument_code)
        summary = ledger.finalize(latest_price)

    logger.info(
        f"Benchmark replay complete: return {summary.return_rate:.2f}% with {len(summary.anomalies)} divergence anomalies."
    )
    return summary
