"""
Reference price ingestion for bonding curves.

Reads the settlement asset's reference-currency price from an external feed
(Chainlink-style ``latest_price()`` answer plus ``decimals``), normalises it
to 18 decimals and caches it for a fixed update interval.

Two read paths:
- ``refresh(now)`` mutates the cache, and only reads the feed when the cached
  value is older than the update interval. Transaction entry points use it.
- ``current_price(now)`` never mutates. When the cache is stale it reads the
  feed on demand so quotes stay responsive across interval boundaries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from ..constants import ORACLE_DECIMALS
from ..curve_exceptions import (
    ConfigurationError,
    InvalidPriceError,
    OracleUnavailableError,
)

logger = logging.getLogger(__name__)


class PriceFeed(Protocol):
    """Interface that reference price feeds must implement."""

    decimals: int

    def latest_price(self) -> Tuple[int, int]:
        """Return ``(price, updated_at)`` in the feed's own decimals."""
        ...


@dataclass
class MockPriceFeed:
    """
    Settable in-memory feed.

    Defaults mirror a Chainlink BERA/USD aggregator answering $3000 with
    8 decimals.
    """

    price: int = 3000 * 10**8
    decimals: int = 8
    updated_at: int = 0
    available: bool = True
    reads: int = 0

    def latest_price(self) -> Tuple[int, int]:
        self.reads += 1
        if not self.available:
            raise OracleUnavailableError("Price feed is not answering")
        return self.price, self.updated_at

    def set_price(self, price: int, updated_at: Optional[int] = None) -> None:
        self.price = price
        if updated_at is not None:
            self.updated_at = updated_at


@dataclass
class PriceCache:
    """Last accepted reference price (18 decimals) and when it was read."""

    reference_price: int = 0
    last_refresh_time: int = 0

    @property
    def is_filled(self) -> bool:
        return self.reference_price > 0


class CachedPriceOracle:
    """
    Interval-cached view over a price feed.

    Args:
        feed: Source implementing PriceFeed
        update_interval: Seconds a cached price stays valid
        max_feed_age: Optional bound on how old the feed's own answer may be
    """

    def __init__(
        self,
        feed: PriceFeed,
        update_interval: int,
        max_feed_age: Optional[int] = None,
    ) -> None:
        if update_interval < 0:
            raise ConfigurationError(
                f"Invalid update_interval: {update_interval}. Must be >= 0"
            )
        self.feed = feed
        self.update_interval = update_interval
        self.max_feed_age = max_feed_age
        self.cache = PriceCache()

    def needs_refresh(self, now: int) -> bool:
        if not self.cache.is_filled:
            return True
        return now >= self.cache.last_refresh_time + self.update_interval

    def refresh(self, now: int) -> Tuple[int, int]:
        """
        Refresh the cache if it is stale.

        Returns:
            (reference_price, as_of) of the cache after the call

        Raises:
            InvalidPriceError: Feed reported a non-positive price
            OracleUnavailableError: Feed failed or its answer is too old
        """
        if self.needs_refresh(now):
            price = self._read_feed(now)
            self.cache = PriceCache(reference_price=price, last_refresh_time=now)
            logger.debug(
                "Reference price refreshed",
                extra={"event": "oracle.refresh", "price": price, "at": now},
            )
        return self.cache.reference_price, self.cache.last_refresh_time

    def current_price(self, now: int) -> int:
        """Return the reference price without touching the cache."""
        if self.needs_refresh(now):
            return self._read_feed(now)
        return self.cache.reference_price

    def _read_feed(self, now: int) -> int:
        try:
            answer, updated_at = self.feed.latest_price()
        except OracleUnavailableError:
            raise
        except Exception as exc:
            # Transport and aggregator faults surface as a typed oracle error
            raise OracleUnavailableError(
                f"Price feed read failed: {exc}", details={"feed_error": type(exc).__name__}
            ) from exc

        if answer <= 0:
            raise InvalidPriceError(
                f"Invalid price from feed: {answer}", details={"answer": answer}
            )

        if self.max_feed_age is not None and now - updated_at > self.max_feed_age:
            raise OracleUnavailableError(
                f"Feed answer is stale ({now - updated_at}s old)",
                details={"updated_at": updated_at, "max_age": self.max_feed_age},
            )

        return self._scale(answer)

    def _scale(self, answer: int) -> int:
        decimals = self.feed.decimals
        if decimals < ORACLE_DECIMALS:
            return answer * 10 ** (ORACLE_DECIMALS - decimals)
        if decimals > ORACLE_DECIMALS:
            scaled = answer // 10 ** (decimals - ORACLE_DECIMALS)
            if scaled <= 0:
                raise InvalidPriceError(f"Price {answer} rounds to zero at 18 decimals")
            return scaled
        return answer

    # ==================== Rollback ====================

    def snapshot(self) -> Tuple[PriceCache, int]:
        return PriceCache(self.cache.reference_price, self.cache.last_refresh_time), self.update_interval

    def restore(self, state: Tuple[PriceCache, int]) -> None:
        cache, interval = state
        self.cache = PriceCache(cache.reference_price, cache.last_refresh_time)
        self.update_interval = interval
