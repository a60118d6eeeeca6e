# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/constants.py
from decimal import Decimal

# --- Units ---
# Quantities are tracked in lots; prices are quoted per share.
DEFAULT_SHARES_PER_LOT = 1000

# --- Tolerances ---
# A sell may exceed tracked real holdings by this many lots before it is flagged.
HOLDINGS_OVERSELL_TOLERANCE_LOTS = Decimal("0.001")
# Relative headroom allowed before a benchmark sell counts as a divergence.
BENCHMARK_DIVERGENCE_TOLERANCE = Decimal("0.001")
# Residual lot quantity treated as fully consumed.
LOT_QUANTITY_EPSILON = Decimal("0.00001")

# --- Fee schedule defaults ---
DEFAULT_COMMISSION_RATE = Decimal("0.001425")
DEFAULT_TRANSACTION_TAX_RATE = Decimal("0.003")

# --- Benchmark ---
DEFAULT_BENCHMARK_INSTRUMENT_CODE = "0050"

# --- Price cache ---
PRICE_CACHE_KEY_PREFIX = "price_"
DEFAULT_PRICE_CACHE_MAX_ENTRIES = 100

# --- Batch resolution ---
DEFAULT_PRICE_BATCH_SIZE = 5
DEFAULT_PRICE_BATCH_DELAY_SECONDS = 0.5
DEFAULT_PRICE_LOOKUP_TIMEOUT_SECONDS = 10.0
DEFAULT_PRICE_SOURCE_MAX_ATTEMPTS = 2
DEFAULT_PRICE_SOURCE_RETRY_WAIT_SECONDS = 0.5

# --- Ledger labels (metrics) ---
LEDGER_PORTFOLIO = "portfolio"
LEDGER_BENCHMARK = "benchmark"

# --- Price source names ---
SOURCE_LOCAL_HISTORY = "local_history"
