# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/comparator.py
from ..core.models.summaries import PerformanceComparison, PerformanceSummary


def compare_performance(portfolio: PerformanceSummary, benchmark: PerformanceSummary) -> PerformanceComparison:
    difference = portfolio.return_rate - benchmark.return_rate
    return PerformanceComparison(
        user_return_rate=portfolio.return_rate,
        benchmark_return_rate=benchmark.return_rate,
        difference=difference,
        is_better=difference > 0,
    )
