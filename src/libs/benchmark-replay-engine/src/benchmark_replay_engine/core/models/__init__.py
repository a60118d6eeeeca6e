# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/models/__init__.py
from .issues import NormalizationIssue, NormalizationResult
from .settings import ReplaySettings
from .summaries import (
    BenchmarkSummary,
    DateRange,
    DivergenceAnomaly,
    HoldingSnapshot,
    PerformanceComparison,
    PerformanceSummary,
    ReplayReport,
    TransactionSummary,
)
from .transaction import Transaction

__all__ = [
    "BenchmarkSummary",
    "DateRange",
    "DivergenceAnomaly",
    "HoldingSnapshot",
    "NormalizationIssue",
    "NormalizationResult",
    "PerformanceComparison",
    "PerformanceSummary",
    "ReplayReport",
    "ReplaySettings",
    "Transaction",
    "TransactionSummary",
]
