# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/monitoring.py
from prometheus_client import Counter, Histogram

# --------------------------------------------------------------------------------------
# Price resolution
# --------------------------------------------------------------------------------------
PRICE_LOOKUPS_TOTAL = Counter(
    "price_lookups_total",
    "Number of price lookups attempted against each source, by outcome (hit, empty, error).",
    labelnames=("source", "outcome"),
)

PRICE_CACHE_EVENTS_TOTAL = Counter(
    "price_cache_events_total",
    "Price cache events (hit, miss, store, evicted, persist_error).",
    labelnames=("event",),
)

def observe_price_lookup(source: str, outcome: str) -> None:
    PRICE_LOOKUPS_TOTAL.labels(source, outcome).inc()

def observe_cache_event(event: str, count: int = 1) -> None:
    PRICE_CACHE_EVENTS_TOTAL.labels(event).inc(count)

# --------------------------------------------------------------------------------------
# Ledger replay
# --------------------------------------------------------------------------------------
BENCHMARK_DIVERGENCE_ANOMALIES_TOTAL = Counter(
    "benchmark_divergence_anomalies_total",
    "Number of benchmark sells that could not be matched by simulated holdings.",
)

LEDGER_REPLAY_DURATION_SECONDS = Histogram(
    "ledger_replay_duration_seconds",
    "Wall-clock time spent replaying a transaction history through a ledger.",
    labelnames=("ledger",),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)

LEDGER_REPLAY_DEPTH = Histogram(
    "ledger_replay_depth",
    "Number of transactions replayed through a ledger in a single computation.",
    labelnames=("ledger",),
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000),
)

def ledger_replay_timer(ledger: str):
    """Context manager that observes the replay duration of a ledger."""
    return LEDGER_REPLAY_DURATION_SECONDS.labels(ledger).time()
