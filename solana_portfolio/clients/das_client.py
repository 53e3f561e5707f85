"""Client for the DAS (Digital Asset Standard) indexed-asset API.

DAS is a JSON-RPC extension served by indexing providers. Its methods take
named parameters instead of a positional list.
"""

from typing import Any, List, Optional

from pydantic import ValidationError

from solana_portfolio.clients.base_client import JsonRpcClient
from solana_portfolio.config import SolanaConfig, get_solana_config
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.rpc import DasAsset, DasAssetPage
from solana_portfolio.utils.errors import SchemaMismatchError
from solana_portfolio.utils.validation import require_public_key

logger = get_logger(__name__)


class DasClient(JsonRpcClient):
    """Client for ``getAssetsByOwner`` and ``getAssetBatch``."""

    provider = "das"

    def __init__(self, config: Optional[SolanaConfig] = None, **kwargs: Any):
        self.config = config or get_solana_config()
        kwargs.setdefault("timeout", self.config.timeout)
        super().__init__(self.config.asset_api_url, **kwargs)

    async def get_assets_by_owner(self, owner: str, limit: int = 50, page: int = 1) -> DasAssetPage:
        """Get the non-fungible assets of an owner.

        Args:
            owner: Owner address
            limit: Page size
            page: One-based page number

        Returns:
            One page of assets

        Raises:
            InvalidAddressError: If the owner is invalid
            SchemaMismatchError: If the response has no ``items`` list
        """
        require_public_key(owner)
        result = await self._make_request("getAssetsByOwner", {
            "ownerAddress": owner,
            "page": page,
            "limit": limit,
            "displayOptions": {"showFungible": False}
        })
        try:
            return DasAssetPage.model_validate(result)
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected getAssetsByOwner payload: {e}", provider=self.provider) from e

    async def get_asset_batch(self, ids: List[str]) -> List[DasAsset]:
        """Get assets by id.

        Unknown ids come back as null and are dropped, as are entries that do
        not match the asset schema.

        Args:
            ids: Asset (mint) ids

        Returns:
            The assets that were found
        """
        if not ids:
            return []
        result = await self._make_request("getAssetBatch", {"ids": list(ids)})
        if not isinstance(result, list):
            raise SchemaMismatchError("getAssetBatch result is not a list", provider=self.provider)

        assets = []
        for entry in result:
            if entry is None:
                continue
            try:
                assets.append(DasAsset.model_validate(entry))
            except ValidationError as e:
                logger.debug(f"Skipping unparseable asset: {e}")
        return assets
