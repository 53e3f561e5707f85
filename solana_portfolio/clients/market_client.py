"""Clients for the market data providers.

``DexScreenerClient`` returns the trading pair listings of a batch of mints.
``NativePriceClient`` returns the USD price of SOL from CoinGecko.
"""

from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from solana_portfolio.clients.base_client import BaseHttpClient
from solana_portfolio.config import ProviderConfig, get_provider_config
from solana_portfolio.constants import NATIVE_PRICE_ID
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.market import DexPair, DexTokensResponse, NativePriceResponse
from solana_portfolio.utils.errors import SchemaMismatchError

logger = get_logger(__name__)

# DexScreener accepts at most this many comma separated mints per call
MAX_MINTS_PER_CALL = 30


class DexScreenerClient(BaseHttpClient):
    """Client for the DexScreener token pairs endpoint."""

    provider = "dexscreener"

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs: Any):
        """Initialize the client.

        Args:
            config: Provider configuration. Defaults to environment-based config.
            **kwargs: See ``BaseHttpClient``
        """
        self.config = config or get_provider_config()
        kwargs.setdefault("timeout", self.config.timeout)
        super().__init__(**kwargs)

    async def get_pairs(self, mints: Sequence[str]) -> List[DexPair]:
        """Get every pair listing whose base or quote token is one of ``mints``.

        Args:
            mints: Up to 30 mint addresses

        Returns:
            Pair listings, in provider order

        Raises:
            ValueError: If more than 30 mints are requested
            SchemaMismatchError: If the response does not match the pairs schema
        """
        if not mints:
            return []
        if len(mints) > MAX_MINTS_PER_CALL:
            raise ValueError(f"At most {MAX_MINTS_PER_CALL} mints per call, got {len(mints)}")

        url = f"{self.config.dexscreener_url.rstrip('/')}/{','.join(mints)}"
        body = await self._get_json(url, "tokens")
        try:
            response = DexTokensResponse.model_validate(body)
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected DexScreener payload: {e}", provider=self.provider) from e
        return response.pairs or []


class NativePriceClient(BaseHttpClient):
    """Client for the CoinGecko simple price endpoint."""

    provider = "coingecko"

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs: Any):
        self.config = config or get_provider_config()
        kwargs.setdefault("timeout", self.config.timeout)
        super().__init__(**kwargs)

    async def get_native_price(self, asset_id: str = NATIVE_PRICE_ID) -> float:
        """Get the USD price of an asset.

        Args:
            asset_id: CoinGecko asset id

        Returns:
            Price in USD

        Raises:
            SchemaMismatchError: If the response has no USD price for the asset
        """
        body = await self._get_json(
            self.config.native_price_url,
            "simple/price",
            params={"ids": asset_id, "vs_currencies": "usd"}
        )
        try:
            quotes = NativePriceResponse.validate_python(body)
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected price payload: {e}", provider=self.provider) from e
        if asset_id not in quotes:
            raise SchemaMismatchError(f"No price returned for {asset_id}", provider=self.provider)
        return quotes[asset_id].usd
