# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/pricing/resolver.py
import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_fixed

from .. import config
from ..exceptions import TransientPriceSourceError
from ..monitoring import observe_price_lookup
from .cache import PriceCache
from .sources import PriceSource

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    Resolves per-share prices through a fixed fallback chain of sources.

    Dated lookups check the cache, then the local benchmark history (benchmark
    only), then the primary and secondary sources; the first positive price
    wins and non-local results are cached. Latest-price lookups go to the
    primary source, then the secondary, and are not cached.

    Every lookup fails closed: a source error, timeout or empty answer moves
    on to the next source, and an exhausted chain returns None.
    """
    def __init__(
        self,
        primary: PriceSource,
        secondary: Optional[PriceSource] = None,
        local_history: Optional[PriceSource] = None,
        cache: Optional[PriceCache] = None,
        benchmark_instrument_code: str = config.BENCHMARK_INSTRUMENT_CODE,
        lookup_timeout: float = config.PRICE_LOOKUP_TIMEOUT_SECONDS,
        max_attempts: int = config.PRICE_SOURCE_MAX_ATTEMPTS,
        retry_wait: float = config.PRICE_SOURCE_RETRY_WAIT_SECONDS,
        batch_size: int = config.PRICE_BATCH_SIZE,
        batch_delay: float = config.PRICE_BATCH_DELAY_SECONDS,
    ):
        self._primary = primary
        self._secondary = secondary
        self._local_history = local_history
        self._cache = cache if cache is not None else PriceCache()
        self._benchmark_instrument_code = benchmark_instrument_code
        self._lookup_timeout = lookup_timeout
        self._max_attempts = max(1, max_attempts)
        self._retry_wait = retry_wait
        self._batch_size = max(1, batch_size)
        self._batch_delay = batch_delay

    @property
    def cache(self) -> PriceCache:
        return self._cache

    def _remote_sources(self) -> list[PriceSource]:
        return [source for source in (self._primary, self._secondary) if source is not None]

    async def resolve_price(self, instrument_code: str, price_date: date) -> Optional[Decimal]:
        cached = self._cache.get(instrument_code, price_date)
        if cached is not None:
            return cached

        if self._local_history is not None and instrument_code == self._benchmark_instrument_code:
            price = await self._query(self._local_history, instrument_code, price_date)
            if price is not None:
                return price

        for source in self._remote_sources():
            price = await self._query(source, instrument_code, price_date)
            if price is not None:
                self._cache.set(instrument_code, price_date, price)
                return price

        logger.warning(f"No source could price {instrument_code} on {price_date.isoformat()}.")
        return None

    async def resolve_latest_price(self, instrument_code: str) -> Optional[Decimal]:
        for source in self._remote_sources():
            price = await self._query(source, instrument_code)
            if price is not None:
                return price

        logger.warning(f"No source could provide a latest price for {instrument_code}.")
        return None

    async def resolve_batch_latest(self, instrument_codes: Iterable[str]) -> Dict[str, Optional[Decimal]]:
        """
        Resolves latest prices in groups of `batch_size`, pausing `batch_delay`
        seconds between groups. A failed instrument maps to None.
        """
        unique_codes = list(dict.fromkeys(instrument_codes))
        results: Dict[str, Optional[Decimal]] = {}

        for start in range(0, len(unique_codes), self._batch_size):
            if start:
                await asyncio.sleep(self._batch_delay)
            group = unique_codes[start:start + self._batch_size]
            prices = await asyncio.gather(
                *(self.resolve_latest_price(code) for code in group),
                return_exceptions=True,
            )
            for code, price in zip(group, prices):
                if isinstance(price, Exception):
                    logger.warning(f"Latest price lookup for {code} failed: {price}")
                    price = None
                results[code] = price

        return results

    async def _query(self, source: PriceSource, instrument_code: str, price_date: Optional[date] = None) -> Optional[Decimal]:
        """One source lookup under a timeout, retried on transient failures."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_fixed(self._retry_wait),
                retry=retry_if_exception_type(TransientPriceSourceError),
                before_sleep=before_sleep_log(logger, logging.INFO),
                reraise=True,
            ):
                with attempt:
                    if price_date is None:
                        lookup = source.fetch_latest(instrument_code)
                    else:
                        lookup = source.fetch_close(instrument_code, price_date)
                    price = await asyncio.wait_for(lookup, timeout=self._lookup_timeout)
                    if price is not None:
                        price = Decimal(str(price))
        except asyncio.TimeoutError:
            observe_price_lookup(source.name, "error")
            logger.warning(f"Price source '{source.name}' timed out for {instrument_code}.")
            return None
        except Exception as e:
            observe_price_lookup(source.name, "error")
            logger.warning(f"Price source '{source.name}' failed for {instrument_code}: {e}")
            return None

        if price is None:
            observe_price_lookup(source.name, "empty")
            return None

        if not price.is_finite() or price <= 0:
            observe_price_lookup(source.name, "empty")
            logger.warning(f"Price source '{source.name}' returned non-positive price {price} for {instrument_code}.")
            return None

        observe_price_lookup(source.name, "hit")
        return price
