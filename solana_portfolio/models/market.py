"""
Response schemas for the market data providers.

DexScreener sends prices as strings and omits most numeric fields for thin
listings, so every number is optional and coerced where present.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MarketModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PairToken(MarketModel):
    address: str
    name: Optional[str] = None
    symbol: Optional[str] = None


class PairLiquidity(MarketModel):
    usd: Optional[float] = None


class PairPriceChange(MarketModel):
    h24: Optional[float] = None


class PairVolume(MarketModel):
    h24: Optional[float] = None


class PairInfo(MarketModel):
    image_url: Optional[str] = Field(None, alias="imageUrl")


class DexPair(MarketModel):
    """One trading pair listing."""

    chain_id: Optional[str] = Field(None, alias="chainId")
    url: Optional[str] = None
    base_token: PairToken = Field(alias="baseToken")
    price_usd: Optional[float] = Field(None, alias="priceUsd")
    liquidity: Optional[PairLiquidity] = None
    price_change: Optional[PairPriceChange] = Field(None, alias="priceChange")
    volume: Optional[PairVolume] = None
    fdv: Optional[float] = None
    market_cap: Optional[float] = Field(None, alias="marketCap")
    info: Optional[PairInfo] = None

    @property
    def liquidity_usd(self) -> float:
        """Reported USD liquidity, zero when absent."""
        if self.liquidity is None or self.liquidity.usd is None:
            return 0.0
        return self.liquidity.usd


class DexTokensResponse(MarketModel):
    """Response of ``GET /latest/dex/tokens/{mints}``; ``pairs`` may be null."""

    pairs: Optional[List[DexPair]] = None


class NativeQuote(MarketModel):
    """Per-asset entry of CoinGecko ``simple/price``."""

    usd: float


# ``{"solana": {"usd": 123.4}}``
NativePriceResponse = TypeAdapter(Dict[str, NativeQuote])
