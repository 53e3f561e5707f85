"""
Staking position resolver.

The wallet's stake accounts are found by size and by the owner key embedded
in them. Their principal is valued at the share price read from the share
vault's configuration account. The resolver is advisory: every failure
degrades to "no position".
"""

from typing import List, Optional

from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import StakingConfig
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.portfolio import StakedPosition
from solana_portfolio.models.token import TokenQuote
from solana_portfolio.services.price_cache import PriceCache
from solana_portfolio.staking_layout import (
    DEFAULT_LAYOUT,
    StakeLayout,
    decode_account_data,
    decode_share_vault,
    decode_stake_account,
)

logger = get_logger(__name__)


class StakingService:
    """Detects and values the staked position of a wallet."""

    def __init__(
        self,
        solana_client: SolanaClient,
        price_cache: PriceCache,
        config: StakingConfig,
        layout: StakeLayout = DEFAULT_LAYOUT
    ):
        self.solana_client = solana_client
        self.price_cache = price_cache
        self.config = config
        self.layout = layout

    async def get_staked_positions(self, owner: str) -> List[StakedPosition]:
        """
        Get the staked positions of a wallet.

        Args:
            owner: Wallet address

        Returns:
            A single position, or an empty list when none can be determined
        """
        if not self.config.enabled:
            return []
        try:
            return await self._resolve(owner)
        except Exception as e:
            logger.warning(f"No staking position reported for {owner}: {e}")
            return []

    async def get_principal(self, owner: str) -> float:
        """Total principal of the owner's stake accounts."""
        accounts = await self.solana_client.get_program_accounts(
            self.config.program_id,
            [
                {"dataSize": self.layout.stake_account_size},
                {"memcmp": {"offset": self.layout.owner_offset, "bytes": owner}}
            ]
        )
        principal = 0.0
        for account in accounts:
            stake = decode_stake_account(decode_account_data(account.account.data), self.layout)
            if stake.owner == owner:
                principal += stake.principal
        return principal

    async def get_share_price(self) -> Optional[float]:
        """Current share price, or None when the vault config is not found."""
        accounts = await self.solana_client.get_program_accounts(
            self.config.vault_program_id,
            [{"dataSize": self.layout.vault_config_size}]
        )
        if not accounts:
            return None
        vault = decode_share_vault(decode_account_data(accounts[0].account.data), self.layout)
        return vault.share_price

    async def _resolve(self, owner: str) -> List[StakedPosition]:
        principal = await self.get_principal(owner)
        if principal <= 0:
            return []
        share_price = await self.get_share_price()
        if not share_price:
            logger.debug("Share vault config not found or zero share price")
            return []

        staked_amount = principal * share_price
        quote = await self._quote()
        price = quote.price_usd if quote else None
        return [StakedPosition(
            symbol=self.config.symbol,
            name=self.config.name,
            staked_amount=staked_amount,
            logo_uri=self.config.logo_uri or (quote.logo if quote else None),
            price_usd=price,
            value_usd=staked_amount * price if price is not None else None
        )]

    async def _quote(self) -> Optional[TokenQuote]:
        if not self.config.stake_mint:
            return None
        try:
            return await self.price_cache.get_quote(self.config.stake_mint)
        except Exception as e:
            logger.debug(f"Staking price lookup failed: {e}")
            return None
