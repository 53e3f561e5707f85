"""
Metadata/price cache in front of DexScreener.

Quotes are fetched in batches of at most ``batch_size`` mints and kept for
``ttl`` seconds per mint. Mints without any listing are cached as unlisted so
they do not trigger another call within the TTL either. The cache never
raises: a failed batch falls back to stale entries, else leaves its mints
unresolved.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from solana_portfolio.clients.market_client import DexScreenerClient
from solana_portfolio.models.market import DexPair
from solana_portfolio.models.token import TokenQuote
from solana_portfolio.utils.batching import chunked

# Setup logging
logger = logging.getLogger(__name__)


def select_best_listings(pairs: Iterable[DexPair], mints: Iterable[str]) -> Dict[str, DexPair]:
    """Pick the listing with the greatest USD liquidity for each mint.

    Only pairs whose base token is the mint count. On an exact liquidity tie
    the listing that came first wins.

    Args:
        pairs: Listings as returned by the provider
        mints: Mints of interest

    Returns:
        Best listing per mint, for mints that have one
    """
    wanted = set(mints)
    best: Dict[str, DexPair] = {}
    for pair in pairs:
        mint = pair.base_token.address
        if mint not in wanted:
            continue
        current = best.get(mint)
        if current is None or pair.liquidity_usd > current.liquidity_usd:
            best[mint] = pair
    return best


def quote_from_pair(pair: DexPair) -> TokenQuote:
    """Convert a listing into a cache entry."""
    return TokenQuote(
        mint=pair.base_token.address,
        symbol=pair.base_token.symbol,
        name=pair.base_token.name,
        logo=pair.info.image_url if pair.info else None,
        price_usd=pair.price_usd,
        change_24h=pair.price_change.h24 if pair.price_change else None,
        liquidity_usd=pair.liquidity_usd,
        market_cap=pair.market_cap,
        fdv=pair.fdv,
        volume_24h=pair.volume.h24 if pair.volume else None,
        pair_url=pair.url
    )


class PriceCache:
    """In-memory quote cache with a per-entry time-to-live."""

    def __init__(
        self,
        client: DexScreenerClient,
        ttl: float = 300.0,
        batch_size: int = 30,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the cache.

        Args:
            client: DexScreener client used on misses
            ttl: Entry lifetime in seconds (default: 5 minutes)
            batch_size: Maximum mints per provider call
            clock: Monotonic clock, replaceable in tests
        """
        self.client = client
        self.ttl = ttl
        self.batch_size = batch_size
        self._clock = clock
        self.cache = {}  # type: Dict[str, Dict[str, Any]]

    def _is_fresh(self, mint: str, now: float) -> bool:
        entry = self.cache.get(mint)
        return entry is not None and now - entry['timestamp'] < self.ttl

    def peek(self, mint: str) -> Optional[TokenQuote]:
        """Cached quote of ``mint`` regardless of age, without any network call."""
        entry = self.cache.get(mint)
        return entry['data'] if entry else None

    async def get_quotes(self, mints: Sequence[str]) -> Dict[str, TokenQuote]:
        """Resolve quotes for ``mints``.

        Fresh entries are served from memory; the remaining mints are fetched
        in sequential batches.

        Args:
            mints: Mint addresses; duplicates are ignored

        Returns:
            Quotes keyed by mint, for every mint that could be resolved
        """
        unique = list(dict.fromkeys(mints))
        now = self._clock()
        quotes: Dict[str, TokenQuote] = {}
        missing: List[str] = []

        for mint in unique:
            if self._is_fresh(mint, now):
                logger.debug(f"Cache hit for mint: {mint}")
                quote = self.cache[mint]['data']
                if quote is not None:
                    quotes[mint] = quote
            else:
                missing.append(mint)

        for batch in chunked(missing, self.batch_size):
            quotes.update(await self._fetch_batch(batch))

        return quotes

    async def get_quote(self, mint: str) -> Optional[TokenQuote]:
        """Resolve the quote of a single mint."""
        return (await self.get_quotes([mint])).get(mint)

    async def _fetch_batch(self, batch: List[str]) -> Dict[str, TokenQuote]:
        try:
            pairs = await self.client.get_pairs(batch)
        except Exception as e:
            logger.warning(f"Price batch of {len(batch)} mints failed, using stale entries: {e}")
            stale = {}
            for mint in batch:
                quote = self.peek(mint)
                if quote is not None:
                    stale[mint] = quote
            return stale

        best = select_best_listings(pairs, batch)
        fetched_at = self._clock()
        resolved = {}
        for mint in batch:
            pair = best.get(mint)
            quote = quote_from_pair(pair) if pair is not None else None
            # Last writer wins
            self.cache[mint] = {'data': quote, 'timestamp': fetched_at}
            if quote is not None:
                resolved[mint] = quote
        logger.debug(f"Fetched {len(resolved)}/{len(batch)} quotes")
        return resolved

    def invalidate(self, mint: str) -> None:
        """Invalidate a specific cache entry.

        Args:
            mint: The mint to invalidate
        """
        if mint in self.cache:
            del self.cache[mint]
            logger.debug(f"Invalidated cache key: {mint}")

    def clear(self) -> None:
        """Clear the entire cache."""
        self.cache.clear()
        logger.debug("Cleared entire cache")
