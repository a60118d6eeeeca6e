# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/config.py
import os
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from dotenv import load_dotenv

from .constants import (
    DEFAULT_BENCHMARK_INSTRUMENT_CODE,
    DEFAULT_COMMISSION_RATE,
    DEFAULT_PRICE_BATCH_DELAY_SECONDS,
    DEFAULT_PRICE_BATCH_SIZE,
    DEFAULT_PRICE_CACHE_MAX_ENTRIES,
    DEFAULT_PRICE_LOOKUP_TIMEOUT_SECONDS,
    DEFAULT_PRICE_SOURCE_MAX_ATTEMPTS,
    DEFAULT_PRICE_SOURCE_RETRY_WAIT_SECONDS,
    DEFAULT_SHARES_PER_LOT,
    DEFAULT_TRANSACTION_TAX_RATE,
)
from .exceptions import InvalidConfigurationError

# Load environment variables from a .env file for local development.
load_dotenv()


def read_env_value(name: str, default, cast: Callable[[str], Any]):
    """Reads `name` from the environment through `cast`, failing with InvalidConfigurationError."""
    raw = os.getenv(name, str(default))
    try:
        return cast(raw)
    except (ValueError, InvalidOperation) as e:
        raise InvalidConfigurationError(f"Invalid value for {name}: {raw!r}.") from e


# Benchmark Configurations
BENCHMARK_INSTRUMENT_CODE = os.getenv("BENCHMARK_INSTRUMENT_CODE", DEFAULT_BENCHMARK_INSTRUMENT_CODE)
BENCHMARK_COMMISSION_RATE = read_env_value("BENCHMARK_COMMISSION_RATE", DEFAULT_COMMISSION_RATE, Decimal)
BENCHMARK_TRANSACTION_TAX_RATE = read_env_value("BENCHMARK_TRANSACTION_TAX_RATE", DEFAULT_TRANSACTION_TAX_RATE, Decimal)
BENCHMARK_HISTORY_PATH = os.getenv("BENCHMARK_HISTORY_PATH", "data/benchmark-history.json")
SHARES_PER_LOT = read_env_value("SHARES_PER_LOT", DEFAULT_SHARES_PER_LOT, int)

# Price Cache Configurations
PRICE_CACHE_MAX_ENTRIES = read_env_value("PRICE_CACHE_MAX_ENTRIES", DEFAULT_PRICE_CACHE_MAX_ENTRIES, int)
PRICE_CACHE_DATABASE_URL = os.getenv("PRICE_CACHE_DATABASE_URL", "sqlite:///price_cache.db")

# Price Resolution Configurations
PRICE_BATCH_SIZE = read_env_value("PRICE_BATCH_SIZE", DEFAULT_PRICE_BATCH_SIZE, int)
PRICE_BATCH_DELAY_SECONDS = read_env_value("PRICE_BATCH_DELAY_SECONDS", DEFAULT_PRICE_BATCH_DELAY_SECONDS, float)
PRICE_LOOKUP_TIMEOUT_SECONDS = read_env_value("PRICE_LOOKUP_TIMEOUT_SECONDS", DEFAULT_PRICE_LOOKUP_TIMEOUT_SECONDS, float)
PRICE_SOURCE_MAX_ATTEMPTS = read_env_value("PRICE_SOURCE_MAX_ATTEMPTS", DEFAULT_PRICE_SOURCE_MAX_ATTEMPTS, int)
PRICE_SOURCE_RETRY_WAIT_SECONDS = read_env_value("PRICE_SOURCE_RETRY_WAIT_SECONDS", DEFAULT_PRICE_SOURCE_RETRY_WAIT_SECONDS, float)
