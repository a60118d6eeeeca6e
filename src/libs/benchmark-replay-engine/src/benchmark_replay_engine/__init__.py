# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/__init__.py
from .core.enums import IssueCode, IssueSeverity, TransactionKind
from .core.models import (
    BenchmarkSummary,
    DivergenceAnomaly,
    NormalizationIssue,
    NormalizationResult,
    PerformanceComparison,
    PerformanceSummary,
    ReplayReport,
    ReplaySettings,
    Transaction,
    TransactionSummary,
)
from .exceptions import (
    BenchmarkEngineError,
    InvalidConfigurationError,
    PriceSourceError,
    PriceUnavailableError,
    StoreCapacityError,
    TransactionValidationError,
    TransientPriceSourceError,
)
from .logic.comparator import compare_performance
from .pricing.cache import PriceCache
from .pricing.resolver import PriceResolver
from .pricing.sources import LocalHistorySource, PriceSource
from .pricing.stores import InMemoryKeyValueStore, KeyValueStore, SqlAlchemyKeyValueStore
from .services.performance import (
    build_normalizer,
    compute_benchmark_performance,
    compute_portfolio_performance,
    normalize_transactions,
)
from .services.replay_service import PerformanceReplayService
