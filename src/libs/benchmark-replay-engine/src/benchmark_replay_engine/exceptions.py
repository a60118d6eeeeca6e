# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/exceptions.py
from datetime import date
from typing import Iterable, Optional


class BenchmarkEngineError(Exception):
    """Base exception for all benchmark replay engine errors."""
    def __init__(self, message="An unspecified error occurred in the benchmark replay engine."):
        self.message = message
        super().__init__(self.message)


class PriceUnavailableError(BenchmarkEngineError):
    """
    Raised when a ledger operation needs a price and every source in the
    fallback chain came back empty. A missing price_date means the latest price.
    """
    def __init__(self, instrument_code: str, price_date: Optional[date] = None):
        self.instrument_code = instrument_code
        self.price_date = price_date
        when = price_date.isoformat() if price_date else "the latest trading day"
        super().__init__(f"Could not price instrument {instrument_code} on {when}.")


class TransactionValidationError(BenchmarkEngineError):
    """Raised when a transaction batch carries hard validation errors."""
    def __init__(self, issues: Iterable):
        self.issues = list(issues)
        message = "; ".join(issue.message for issue in self.issues)
        super().__init__(message or "Transaction batch failed validation.")


class InvalidConfigurationError(BenchmarkEngineError):
    """Raised when replay settings are out of range."""
    def __init__(self, message="Invalid configuration provided for the benchmark replay engine."):
        self.message = message
        super().__init__(self.message)


class PriceSourceError(Exception):
    """Raised by a price source when a lookup fails."""
    pass


class TransientPriceSourceError(PriceSourceError):
    """
    Raised by a price source for a recoverable failure (e.g. rate limiting or a
    dropped connection). The resolver retries these before falling back.
    """
    pass


class StoreCapacityError(Exception):
    """Raised by a key-value store when it cannot accept another entry."""
    pass
