"""
Token balance resolver.

Scans both token programs, merges the fungible balances per mint, caps the
set to the largest holdings and enriches it with market quotes and, for
mints without a listing, on-chain metadata.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import EngineConfig
from solana_portfolio.constants import TOKEN_PROGRAM_IDS, UNKNOWN_TOKEN_NAME
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.rpc import ParsedTokenAccount
from solana_portfolio.models.token import TokenHolding, TokenMetadata, TokenQuote
from solana_portfolio.services.metadata_service import MetadataService
from solana_portfolio.services.price_cache import PriceCache
from solana_portfolio.utils.resilience import pace
from solana_portfolio.utils.validation import shorten_address

logger = get_logger(__name__)


@dataclass
class MintBalance:
    """Raw balance of one mint, summed over the owner's token accounts."""

    mint: str
    amount: int
    decimals: int

    @property
    def ui_amount(self) -> float:
        return self.amount / 10 ** self.decimals


def merge_token_accounts(accounts: Iterable[ParsedTokenAccount]) -> List[MintBalance]:
    """Collapse token accounts into one fungible balance per mint.

    Zero balances and NFT-shaped accounts (raw amount 1, zero decimals) are
    dropped. Mints keep the order in which they were first seen.
    """
    balances: Dict[str, MintBalance] = {}
    for account in accounts:
        if account.amount <= 0 or account.looks_like_nft:
            continue
        existing = balances.get(account.mint)
        if existing is None:
            balances[account.mint] = MintBalance(account.mint, account.amount, account.decimals)
        else:
            existing.amount += account.amount
    return list(balances.values())


def build_holding(
    balance: MintBalance,
    quote: Optional[TokenQuote],
    metadata: Optional[TokenMetadata]
) -> TokenHolding:
    """Combine a balance with whatever enrichment was found for it."""
    symbol = (quote and quote.symbol) or (metadata and metadata.symbol) or shorten_address(balance.mint)
    name = (quote and quote.name) or (metadata and metadata.name) or UNKNOWN_TOKEN_NAME
    logo = (quote and quote.logo) or (metadata and metadata.image) or None
    return TokenHolding(
        mint=balance.mint,
        symbol=symbol,
        name=name,
        amount=balance.amount,
        decimals=balance.decimals,
        logo_uri=logo,
        price_usd=quote.price_usd if quote else None,
        change_24h=quote.change_24h if quote else None,
        verified=quote is not None
    )


def sort_holdings(holdings: Iterable[TokenHolding]) -> List[TokenHolding]:
    """Order by USD value, then UI amount, both descending. A missing value ranks as zero."""
    return sorted(
        holdings,
        key=lambda h: (h.value_usd if h.value_usd is not None else 0.0, h.ui_amount),
        reverse=True
    )


class TokenService:
    """Builds the ranked fungible token list of a wallet."""

    def __init__(
        self,
        solana_client: SolanaClient,
        price_cache: PriceCache,
        metadata_service: MetadataService,
        config: EngineConfig
    ):
        self.solana_client = solana_client
        self.price_cache = price_cache
        self.metadata_service = metadata_service
        self.config = config

    async def scan_token_accounts(self, owner: str) -> List[ParsedTokenAccount]:
        """Enumerate the owner's token accounts under both token programs.

        The programs are scanned one after the other with a pause in between.
        A failure of either scan propagates.
        """
        accounts: List[ParsedTokenAccount] = []
        for index, program_id in enumerate(TOKEN_PROGRAM_IDS):
            if index > 0:
                await pace(self.config.token_program_pause)
            program_accounts = await self.solana_client.get_token_accounts_by_owner(owner, program_id)
            logger.debug(f"{len(program_accounts)} token accounts under {program_id}")
            accounts.extend(program_accounts)
        return accounts

    async def get_token_holdings(self, owner: str) -> List[TokenHolding]:
        """
        Resolve the fungible token holdings of a wallet.

        Args:
            owner: Wallet address

        Returns:
            Holdings sorted by value, then UI amount, descending

        Raises:
            PortfolioError: If a token program scan fails
        """
        balances = merge_token_accounts(await self.scan_token_accounts(owner))
        ranked = sorted(balances, key=lambda b: b.ui_amount, reverse=True)[:self.config.enrichment_cap]
        mints = [b.mint for b in ranked]

        quotes: Dict[str, TokenQuote] = {}
        try:
            quotes = await self.price_cache.get_quotes(mints)
        except Exception as e:
            logger.warning(f"Price enrichment failed for {owner}: {e}")

        metadata: Dict[str, TokenMetadata] = {}
        unresolved = [mint for mint in mints if mint not in quotes][:self.config.metadata_fallback_cap]
        if unresolved:
            try:
                metadata = await self.metadata_service.resolve(unresolved)
            except Exception as e:
                logger.warning(f"Metadata fallback failed for {owner}: {e}")

        holdings = [build_holding(b, quotes.get(b.mint), metadata.get(b.mint)) for b in ranked]
        logger.info(f"Resolved {len(holdings)} token holdings ({len(quotes)} priced) for {owner}")
        return sort_holdings(holdings)
