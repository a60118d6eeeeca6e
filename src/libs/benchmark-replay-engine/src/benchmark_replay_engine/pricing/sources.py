# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/pricing/sources.py
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .. import config
from ..constants import SOURCE_LOCAL_HISTORY

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    """
    An external provider of per-share close prices. Implementations return
    None when they have no quote and raise PriceSourceError (or
    TransientPriceSourceError for retryable failures) when the lookup fails.
    """
    name: str

    async def fetch_close(self, instrument_code: str, price_date: date) -> Optional[Decimal]: ...

    async def fetch_latest(self, instrument_code: str) -> Optional[Decimal]: ...


class LocalHistorySource:
    """
    Serves close prices of a single instrument from a pre-baked JSON file of
    the form {"YYYY-MM-DD": price}. The file is read on first use.
    """
    name = SOURCE_LOCAL_HISTORY

    def __init__(
        self,
        instrument_code: str = config.BENCHMARK_INSTRUMENT_CODE,
        history_path: Union[str, Path] = config.BENCHMARK_HISTORY_PATH,
    ):
        self._instrument_code = instrument_code
        self._history_path = Path(history_path)
        self._prices: Optional[Dict[date, Decimal]] = None

    async def fetch_close(self, instrument_code: str, price_date: date) -> Optional[Decimal]:
        if instrument_code != self._instrument_code:
            return None
        return self._load().get(price_date)

    async def fetch_latest(self, instrument_code: str) -> Optional[Decimal]:
        # Pre-baked history is never current.
        return None

    def _load(self) -> Dict[date, Decimal]:
        if self._prices is not None:
            return self._prices

        self._prices = {}
        try:
            with self._history_path.open(encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Benchmark history file '{self._history_path}' not found; local history disabled.")
            return self._prices
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read benchmark history file '{self._history_path}': {e}")
            return self._prices

        for day, price in raw.items():
            try:
                self._prices[date.fromisoformat(day)] = Decimal(str(price))
            except (TypeError, ValueError, ArithmeticError):
                logger.warning(f"Skipping malformed benchmark history entry '{day}': {price!r}")

        logger.info(f"Loaded {len(self._prices)} {self._instrument_code} closes from '{self._history_path}'.")
        return self._prices
