"""
Data models for the portfolio engine.
"""

from solana_portfolio.models.portfolio import (
    ActivityRecord,
    ActivityStatus,
    ActivityType,
    Direction,
    NFTHolding,
    StakedPosition,
    WalletSnapshot,
)
from solana_portfolio.models.token import TokenHolding, TokenMarketData, TokenMetadata, TokenQuote

__all__ = [
    "ActivityRecord",
    "ActivityStatus",
    "ActivityType",
    "Direction",
    "NFTHolding",
    "StakedPosition",
    "TokenHolding",
    "TokenMarketData",
    "TokenMetadata",
    "TokenQuote",
    "WalletSnapshot",
]
