"""
NFT resolver.

The DAS index is the primary source. When it fails for any reason the token
program is scanned for NFT-shaped accounts instead and stub records are
returned. The two sources are never merged.
"""

from typing import List

from solana_portfolio.clients.das_client import DasClient
from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import EngineConfig
from solana_portfolio.constants import TOKEN_PROGRAM_ID, UNNAMED_NFT_NAME
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.portfolio import NFTHolding
from solana_portfolio.models.rpc import DasAsset
from solana_portfolio.utils.validation import shorten_address

logger = get_logger(__name__)


def holding_from_asset(asset: DasAsset) -> NFTHolding:
    return NFTHolding(
        mint=asset.id,
        name=asset.name or UNNAMED_NFT_NAME,
        image=asset.image or "",
        collection=asset.collection,
        description=asset.content.metadata.description
    )


def stub_holding(mint: str) -> NFTHolding:
    """Placeholder for an NFT found without any metadata source."""
    return NFTHolding(mint=mint, name=f"NFT {shorten_address(mint)}", image="")


class NFTService:
    """Resolves the NFTs of a wallet."""

    def __init__(self, solana_client: SolanaClient, das_client: DasClient, config: EngineConfig):
        self.solana_client = solana_client
        self.das_client = das_client
        self.config = config

    async def get_nfts(self, owner: str) -> List[NFTHolding]:
        """
        Resolve up to ``nft_cap`` NFTs owned by a wallet.

        Args:
            owner: Wallet address

        Returns:
            NFT holdings from the DAS index, or stubs from the fallback scan

        Raises:
            PortfolioError: If both the DAS index and the fallback scan fail
        """
        try:
            return await self._from_index(owner)
        except Exception as e:
            logger.warning(f"DAS lookup failed for {owner}, scanning token accounts instead: {e}")
        return await self._from_token_accounts(owner)

    async def _from_index(self, owner: str) -> List[NFTHolding]:
        page = await self.das_client.get_assets_by_owner(owner, limit=self.config.das_page_limit)
        return [holding_from_asset(asset) for asset in page.items[:self.config.nft_cap]]

    async def _from_token_accounts(self, owner: str) -> List[NFTHolding]:
        accounts = await self.solana_client.get_token_accounts_by_owner(owner, TOKEN_PROGRAM_ID)
        mints = [account.mint for account in accounts if account.looks_like_nft]
        return [stub_holding(mint) for mint in mints[:self.config.nft_cap]]
