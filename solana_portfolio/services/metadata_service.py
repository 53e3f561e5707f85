"""
On-chain metadata fallback for tokens without a market listing.

Mints are first looked up in a small registry of well-known tokens, then
through the DAS ``getAssetBatch`` call. Lookup failures are logged and leave
the affected mints unresolved.
"""

from typing import Dict, Sequence

from solana_portfolio.clients.das_client import DasClient
from solana_portfolio.constants import KNOWN_TOKENS
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.token import TokenMetadata

logger = get_logger(__name__)


class MetadataService:
    """Resolves display name, symbol and image of mints."""

    def __init__(self, das_client: DasClient, cap: int = 30):
        """
        Args:
            das_client: DAS client used for ``getAssetBatch``
            cap: Maximum number of mints resolved per call
        """
        self.das_client = das_client
        self.cap = cap

    async def resolve(self, mints: Sequence[str]) -> Dict[str, TokenMetadata]:
        """
        Resolve metadata for up to ``cap`` mints.

        Args:
            mints: Mint addresses, in priority order

        Returns:
            Metadata keyed by mint, for mints with at least a name or symbol
        """
        wanted = list(dict.fromkeys(mints))[:self.cap]
        resolved: Dict[str, TokenMetadata] = {}

        for mint in wanted:
            known = KNOWN_TOKENS.get(mint)
            if known:
                resolved[mint] = TokenMetadata(mint=mint, **known)

        remaining = [mint for mint in wanted if mint not in resolved]
        if not remaining:
            return resolved

        try:
            assets = await self.das_client.get_asset_batch(remaining)
        except Exception as e:
            logger.warning(f"Metadata lookup for {len(remaining)} mints failed: {e}")
            return resolved

        for asset in assets:
            if asset.id not in remaining or not (asset.name or asset.symbol):
                continue
            resolved[asset.id] = TokenMetadata(
                mint=asset.id,
                name=asset.name,
                symbol=asset.symbol,
                image=asset.image
            )

        logger.debug(f"Resolved metadata for {len(resolved)}/{len(wanted)} mints")
        return resolved
