# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/pricing/cache.py
import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from .. import config
from ..constants import PRICE_CACHE_KEY_PREFIX
from ..exceptions import InvalidConfigurationError
from ..monitoring import observe_cache_event
from .stores import KeyValueStore

logger = logging.getLogger(__name__)


def make_cache_key(instrument_code: str, price_date: date) -> str:
    return f"{PRICE_CACHE_KEY_PREFIX}{instrument_code}_{price_date.isoformat()}"


class PriceCache:
    """
    Bounded memo of (instrument, date) -> close price, oldest-inserted entry
    evicted first. An optional KeyValueStore mirrors the entries on a best-effort
    basis: store failures are logged and never reach the caller.
    """
    def __init__(self, store: Optional[KeyValueStore] = None, max_entries: int = config.PRICE_CACHE_MAX_ENTRIES):
        if max_entries <= 0:
            raise InvalidConfigurationError(f"Invalid price cache 'max_entries': {max_entries}.")
        self._store = store
        self._max_entries = max_entries
        self._entries: "OrderedDict[str, Decimal]" = OrderedDict()
        if store is not None:
            self._warm_from_store()

    def get(self, instrument_code: str, price_date: date) -> Optional[Decimal]:
        key = make_cache_key(instrument_code, price_date)
        price = self._entries.get(key)
        if price is None:
            observe_cache_event("miss")
            return None
        observe_cache_event("hit")
        logger.debug(f"Price cache hit for {key}.")
        return price

    def set(self, instrument_code: str, price_date: date, price: Decimal):
        key = make_cache_key(instrument_code, price_date)
        self._entries[key] = price
        observe_cache_event("store")
        self._evict_overflow()
        self._persist(key, price)

    def clear(self):
        keys = set(self._entries)
        self._entries.clear()
        if self._store is None:
            return
        try:
            keys.update(self._store.get_all(PRICE_CACHE_KEY_PREFIX))
            for key in keys:
                self._store.remove(key)
        except Exception as e:
            logger.warning(f"Failed to clear persisted price cache: {e}")

    def stats(self) -> Dict[str, Any]:
        return {"count": len(self._entries), "keys": list(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)

    def _warm_from_store(self):
        try:
            persisted = self._store.get_all(PRICE_CACHE_KEY_PREFIX)
        except Exception as e:
            logger.warning(f"Could not load persisted price cache: {e}")
            return

        for key, value in persisted.items():
            try:
                date.fromisoformat(key.rsplit("_", 1)[1])
                price = Decimal(value)
            except (IndexError, ValueError, InvalidOperation):
                logger.warning(f"Skipping malformed persisted price cache entry '{key}'.")
                continue
            if not price.is_finite() or price <= 0:
                logger.warning(f"Skipping malformed persisted price cache entry '{key}'.")
                continue
            self._entries[key] = price

        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        logger.info(f"Warmed price cache with {len(self._entries)} entries.")

    def _evict_overflow(self):
        while len(self._entries) > self._max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            observe_cache_event("evicted")
            if self._store is None:
                continue
            try:
                self._store.remove(evicted_key)
            except Exception as e:
                logger.warning(f"Failed to remove evicted price cache entry '{evicted_key}': {e}")

    def _persist(self, key: str, price: Decimal):
        if self._store is None:
            return
        try:
            self._store.set(key, str(price))
            return
        except Exception as e:
            observe_cache_event("persist_error")
            logger.warning(f"Persisting price cache entry '{key}' failed ({e}); trimming persisted entries and retrying.")

        try:
            self._trim_store(self._max_entries // 2)
            self._store.set(key, str(price))
        except Exception as e:
            observe_cache_event("persist_error")
            logger.warning(f"Retry persisting '{key}' failed ({e}); keeping the entry in memory only.")

    def _trim_store(self, keep: int):
        """Removes the oldest persisted entries until at most `keep` remain."""
        persisted_keys = list(self._store.get_all(PRICE_CACHE_KEY_PREFIX))
        for key in persisted_keys[:max(0, len(persisted_keys) - keep)]:
            self._store.remove(key)
