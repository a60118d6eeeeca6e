# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/services/replay_service.py
import asyncio
import logging
from typing import Any, Iterable, List, Optional, Tuple

from ..core.models.settings import ReplaySettings
from ..core.models.summaries import BenchmarkSummary, PerformanceSummary, ReplayReport
from ..core.models.transaction import Transaction
from ..exceptions import TransactionValidationError
from ..logging_utils import correlation_id_var, generate_correlation_id
from ..logic.comparator import compare_performance
from ..logic.normalizer import TransactionNormalizer
from ..pricing.resolver import PriceResolver
from .performance import compute_benchmark_performance, compute_portfolio_performance

logger = logging.getLogger(__name__)


class PerformanceReplayService:
    """
    Orchestrates a full comparison: normalize the raw feed, replay it through
    the portfolio and benchmark ledgers concurrently and compare the results.
    Each ledger keeps strict trade-date order; the two share only the price cache.
    """
    def __init__(
        self,
        normalizer: TransactionNormalizer,
        resolver: PriceResolver,
        settings: Optional[ReplaySettings] = None,
    ):
        self._normalizer = normalizer
        self._resolver = resolver
        self._settings = settings or ReplaySettings()

    async def run(self, raw_transactions: Iterable[Any]) -> ReplayReport:
        correlation_id = generate_correlation_id("BRE")
        token = correlation_id_var.set(correlation_id)
        try:
            logger.info("Starting benchmark replay.")

            # 1. Normalize; a rejected batch stops here
            normalization = self._normalizer.normalize(raw_transactions)
            if not normalization.is_valid:
                raise TransactionValidationError(normalization.errors)
            transactions = normalization.transactions

            # 2. Replay both ledgers; if either fails the other is cancelled
            portfolio, benchmark = await self._replay_ledgers(transactions)

            # 3. Compare
            comparison = compare_performance(portfolio, benchmark)
            logger.info(
                f"Benchmark replay finished: portfolio {comparison.user_return_rate:.2f}% "
                f"vs benchmark {comparison.benchmark_return_rate:.2f}%."
            )
            return ReplayReport(
                correlation_id=correlation_id,
                normalization=normalization,
                summary=self._normalizer.summarize(transactions),
                portfolio=portfolio,
                benchmark=benchmark,
                comparison=comparison,
            )
        finally:
            correlation_id_var.reset(token)

    async def _replay_ledgers(self, transactions: List[Transaction]) -> Tuple[PerformanceSummary, BenchmarkSummary]:
        tasks = [
            asyncio.create_task(
                compute_portfolio_performance(transactions, self._resolver, self._settings.shares_per_lot)
            ),
            asyncio.create_task(
                compute_benchmark_performance(transactions, self._resolver, self._settings)
            ),
        ]
        try:
            portfolio, benchmark = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return portfolio, benchmark
