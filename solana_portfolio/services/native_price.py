"""Native asset (SOL) USD price with its own short-lived cache."""

import logging
import time
from typing import Callable

from cachetools import TTLCache

from solana_portfolio.clients.market_client import NativePriceClient
from solana_portfolio.constants import NATIVE_PRICE_ID

logger = logging.getLogger(__name__)


class NativePriceService:
    """Caches the SOL price for ``ttl`` seconds, independently of token quotes.

    Errors from the provider propagate: without a native price no snapshot
    can be valued.
    """

    def __init__(self, client: NativePriceClient, ttl: float = 60.0, timer: Callable[[], float] = time.monotonic):
        self.client = client
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl, timer=timer)

    async def get_price(self) -> float:
        """Get the USD price of SOL.

        Returns:
            Price in USD
        """
        cached_price = self._cache.get(NATIVE_PRICE_ID)
        if cached_price is not None:
            logger.debug(f"Native price cache hit: {cached_price}")
            return cached_price

        price = await self.client.get_native_price(NATIVE_PRICE_ID)
        self._cache[NATIVE_PRICE_ID] = price
        return price
