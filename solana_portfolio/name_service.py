"""Domain name resolution for ``.sol`` and ``.skr`` names.

``.sol`` names resolve through the Bonfida SNS proxy, falling back to the SNS
API v2. ``.skr`` names resolve only through AllDomains.
"""

from typing import Any, Optional

from solana_portfolio.clients.base_client import BaseHttpClient
from solana_portfolio.config import ProviderConfig, get_provider_config
from solana_portfolio.logging_config import get_logger
from solana_portfolio.utils.errors import PortfolioError
from solana_portfolio.utils.validation import validate_public_key

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".sol", ".skr")


def extract_address(value: Any) -> Optional[str]:
    """Address from a provider field holding a string or a list of strings."""
    if isinstance(value, str):
        candidate = value.strip()
    elif isinstance(value, list) and value:
        candidate = str(value[0]).strip()
    else:
        return None
    return candidate if validate_public_key(candidate) else None


def is_domain(query: str) -> bool:
    return query.strip().lower().endswith(SUPPORTED_SUFFIXES)


class NameServiceClient(BaseHttpClient):
    """Client for the public name service resolvers."""

    provider = "name-service"

    def __init__(self, config: Optional[ProviderConfig] = None, **kwargs: Any):
        """Initialize the name service client.

        Args:
            config: Provider configuration. Defaults to environment-based config.
            **kwargs: See ``BaseHttpClient``
        """
        self.config = config or get_provider_config()
        kwargs.setdefault("timeout", self.config.timeout)
        super().__init__(**kwargs)

    async def resolve_domain(self, domain: str) -> Optional[str]:
        """Resolve a domain to the address that owns it.

        Args:
            domain: Name ending in ``.sol`` or ``.skr``

        Returns:
            The owner address, or None if it cannot be resolved
        """
        name = domain.strip().lower()
        if name.endswith(".sol"):
            return await self._resolve_sol(name[:-len(".sol")])
        if name.endswith(".skr"):
            return await self._resolve_skr(name)
        return None

    async def _lookup(self, url: str, field: str) -> Optional[str]:
        try:
            body = await self._get_json(url, "resolve")
        except PortfolioError as e:
            logger.warning(f"Name lookup at {url} failed: {e}")
            return None
        if not isinstance(body, dict):
            return None
        return extract_address(body.get(field))

    async def _resolve_sol(self, label: str) -> Optional[str]:
        address = await self._lookup(f"{self.config.sns_proxy_url.rstrip('/')}/resolve/{label}", "result")
        if address:
            return address
        return await self._lookup(f"{self.config.sns_api_url.rstrip('/')}/resolve/{label}", "result")

    async def _resolve_skr(self, domain: str) -> Optional[str]:
        # Bonfida resolves .sol only and would return a wrong owner for .skr
        return await self._lookup(f"{self.config.alldomains_url.rstrip('/')}/domain/{domain}", "owner")
