"""
Portfolio data models.

This module defines the records that make up a ``WalletSnapshot``.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from solana_portfolio.models.token import TokenHolding
from solana_portfolio.utils.errors import ErrorCode


class ActivityType(str, Enum):
    TRANSFER = "transfer"
    SWAP = "swap"
    NFT = "nft"
    UNKNOWN = "unknown"


class ActivityStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class Direction(str, Enum):
    IN = "in"
    OUT = "out"


class NFTHolding(BaseModel):
    """A non-fungible asset owned by the wallet."""
    model_config = ConfigDict(frozen=True)

    mint: str
    name: str
    image: str = ""
    collection: Optional[str] = None
    description: Optional[str] = None


class ActivityRecord(BaseModel):
    """
    One recent transaction of the wallet.

    ``timestamp`` is None while the block time is not known. ``amount`` is
    the signed native delta in SOL, present for transfers only.
    """
    model_config = ConfigDict(frozen=True)

    signature: str
    timestamp: Optional[int] = None
    type: ActivityType = ActivityType.UNKNOWN
    status: ActivityStatus = ActivityStatus.SUCCESS
    fee: float = 0.0
    amount: Optional[float] = None
    direction: Optional[Direction] = None
    counterparty: Optional[str] = None


class StakedPosition(BaseModel):
    """A staked principal valued at the current share price."""
    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    staked_amount: float
    logo_uri: Optional[str] = None
    price_usd: Optional[float] = None
    value_usd: Optional[float] = None


class WalletSnapshot(BaseModel):
    """
    Complete view of a wallet at ``last_updated``.

    ``errors`` maps each degraded section (tokens, nfts, transactions,
    balance_history, staking) to the code of the failure that emptied it.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    sol_balance: float
    sol_price_usd: float
    total_value_usd: float
    tokens: List[TokenHolding] = Field(default_factory=list)
    nfts: List[NFTHolding] = Field(default_factory=list)
    transactions: List[ActivityRecord] = Field(default_factory=list)
    staked_tokens: List[StakedPosition] = Field(default_factory=list)
    balance_history: List[float] = Field(default_factory=list)
    last_updated: datetime
    errors: Dict[str, ErrorCode] = Field(default_factory=dict)

    @property
    def native_value_usd(self) -> float:
        return self.sol_balance * self.sol_price_usd

    @property
    def is_partial(self) -> bool:
        return bool(self.errors)


def compute_total_value(
    sol_balance: float,
    sol_price_usd: float,
    tokens: Iterable[TokenHolding],
    staked: Iterable[StakedPosition]
) -> float:
    """Native value plus every known token and staked value; missing values count as zero."""
    token_value = sum((t.value_usd for t in tokens if t.value_usd is not None), 0.0)
    staked_value = sum((s.value_usd for s in staked if s.value_usd is not None), 0.0)
    return sol_balance * sol_price_usd + token_value + staked_value
