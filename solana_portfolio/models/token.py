"""
Token data models for the portfolio engine.

This module defines Pydantic models for token holdings, cached market quotes
and the market detail view.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TokenQuote(BaseModel):
    """
    Resolved market data for one mint, as held by the price cache.

    Built from the highest-liquidity listing of the mint.
    """
    model_config = ConfigDict(frozen=True)

    mint: str
    symbol: Optional[str] = None
    name: Optional[str] = None
    logo: Optional[str] = None
    price_usd: Optional[float] = None
    change_24h: Optional[float] = None
    liquidity_usd: float = 0.0
    market_cap: Optional[float] = None
    fdv: Optional[float] = None
    volume_24h: Optional[float] = None
    pair_url: Optional[str] = None


class TokenMetadata(BaseModel):
    """
    Display metadata recovered without a market listing.
    """
    model_config = ConfigDict(frozen=True)

    mint: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    image: Optional[str] = None


class TokenMarketData(BaseModel):
    """
    Market detail of a single token.
    """
    model_config = ConfigDict(frozen=True)

    mint: str
    price_usd: Optional[float] = None
    change_24h: Optional[float] = None
    market_cap: Optional[float] = None
    fdv: Optional[float] = None
    volume_24h: Optional[float] = None
    liquidity_usd: Optional[float] = None
    dex_url: Optional[str] = None

    @classmethod
    def from_quote(cls, quote: TokenQuote) -> "TokenMarketData":
        return cls(
            mint=quote.mint,
            price_usd=quote.price_usd,
            change_24h=quote.change_24h,
            market_cap=quote.market_cap,
            fdv=quote.fdv,
            volume_24h=quote.volume_24h,
            liquidity_usd=quote.liquidity_usd,
            dex_url=quote.pair_url
        )


class TokenHolding(BaseModel):
    """
    A fungible token position of the wallet.

    ``ui_amount`` is always ``amount / 10**decimals`` and ``value_usd`` is
    only set when a price is known; both are derived at construction and
    any values passed for them are ignored.
    """
    model_config = ConfigDict(frozen=True)

    mint: str
    symbol: str
    name: str
    amount: int = Field(ge=0)
    decimals: int = Field(ge=0)
    ui_amount: float = 0.0
    logo_uri: Optional[str] = None
    price_usd: Optional[float] = None
    value_usd: Optional[float] = None
    change_24h: Optional[float] = None
    verified: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_amounts(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        ui_amount = int(data["amount"]) / 10 ** int(data["decimals"])
        data["ui_amount"] = ui_amount
        price = data.get("price_usd")
        data["value_usd"] = ui_amount * price if price is not None else None
        return data
