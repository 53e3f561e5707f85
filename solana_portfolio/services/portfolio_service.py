"""
Wallet snapshot orchestration.

``PortfolioEngine`` owns the provider clients and the shared price cache and
assembles a ``WalletSnapshot`` in three phases:

1. native balance and SOL price, concurrently, under one deadline (fatal);
2. token holdings under a longer deadline (degrades to no tokens);
3. NFTs, activity, balance history and staking concurrently, each under its
   own deadline (each degrades independently).
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from solana_portfolio.clients.das_client import DasClient
from solana_portfolio.clients.market_client import DexScreenerClient, NativePriceClient
from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import AppConfig, get_app_config
from solana_portfolio.logging_config import get_logger, log_with_context
from solana_portfolio.models.portfolio import WalletSnapshot, compute_total_value
from solana_portfolio.models.token import TokenHolding, TokenMarketData
from solana_portfolio.name_service import NameServiceClient, is_domain
from solana_portfolio.services.balance_history import BalanceHistoryService
from solana_portfolio.services.metadata_service import MetadataService
from solana_portfolio.services.native_price import NativePriceService
from solana_portfolio.services.nft_service import NFTService
from solana_portfolio.services.price_cache import PriceCache
from solana_portfolio.services.staking_service import StakingService
from solana_portfolio.services.token_service import TokenService
from solana_portfolio.services.transaction_service import TransactionService
from solana_portfolio.utils.errors import InvalidAddressError, SnapshotUnavailableError, error_code_of
from solana_portfolio.utils.resilience import RetryPolicy, pace, with_deadline
from solana_portfolio.utils.validation import require_public_key, validate_public_key
from solana_portfolio.websocket import AccountSubscriptionClient, LamportsCallback

logger = get_logger(__name__)

DETAIL_SECTIONS = ("nfts", "transactions", "balance_history", "staking")


class PortfolioEngine:
    """Aggregates wallet data from every provider into one snapshot."""

    def __init__(
        self,
        config: AppConfig,
        solana_client: SolanaClient,
        das_client: DasClient,
        market_client: DexScreenerClient,
        native_price_client: NativePriceClient,
        name_client: Optional[NameServiceClient] = None,
        ws_client: Optional[AccountSubscriptionClient] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Application configuration
            solana_client: JSON-RPC client
            das_client: Indexed-asset client
            market_client: DexScreener client
            native_price_client: Native price client
            name_client: Domain name resolver
            ws_client: Account subscription client
        """
        self.config = config
        self.solana_client = solana_client
        self.das_client = das_client
        self.market_client = market_client
        self.native_price_client = native_price_client
        self.name_client = name_client
        self.ws_client = ws_client

        engine = config.engine
        self.price_cache = PriceCache(market_client, ttl=engine.price_cache_ttl, batch_size=engine.price_batch_size)
        self.native_price = NativePriceService(native_price_client, ttl=engine.native_price_ttl)
        self.metadata_service = MetadataService(das_client, cap=engine.metadata_fallback_cap)
        self.token_service = TokenService(solana_client, self.price_cache, self.metadata_service, engine)
        self.nft_service = NFTService(solana_client, das_client, engine)
        self.transaction_service = TransactionService(solana_client, engine)
        self.balance_history_service = BalanceHistoryService(solana_client, engine)
        self.staking_service = StakingService(solana_client, self.price_cache, config.staking)

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "PortfolioEngine":
        """Build an engine and its clients from configuration."""
        config = config or get_app_config()
        retry_policy = RetryPolicy(
            max_attempts=config.engine.retry_max_attempts,
            base_delay=config.engine.retry_base_delay
        )
        return cls(
            config,
            solana_client=SolanaClient(config.solana, retry_policy=retry_policy),
            das_client=DasClient(config.solana, retry_policy=retry_policy),
            market_client=DexScreenerClient(config.providers, retry_policy=retry_policy),
            native_price_client=NativePriceClient(config.providers, retry_policy=retry_policy),
            name_client=NameServiceClient(config.providers, retry_policy=retry_policy),
            ws_client=AccountSubscriptionClient(config.solana)
        )

    async def close(self) -> None:
        """Release every connection owned by the engine."""
        if self.ws_client is not None:
            await self.ws_client.disconnect()
        for client in (self.solana_client, self.das_client, self.market_client,
                       self.native_price_client, self.name_client):
            if client is not None:
                await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch_native_balance(self, address: str) -> float:
        """
        Get the SOL balance of a wallet.

        Args:
            address: Wallet address

        Returns:
            Balance in SOL

        Raises:
            InvalidAddressError: If the address is invalid
        """
        require_public_key(address)
        return await self.solana_client.get_sol_balance(address)

    async def fetch_token_market_data(self, mint: str) -> Optional[TokenMarketData]:
        """
        Get market data of a single token through the price cache.

        Args:
            mint: Token mint address

        Returns:
            Market data, or None if the token has no listing

        Raises:
            InvalidAddressError: If the mint is invalid
        """
        require_public_key(mint)
        quote = await self.price_cache.get_quote(mint)
        return TokenMarketData.from_quote(quote) if quote else None

    async def subscribe_account(self, address: str, callback: LamportsCallback) -> int:
        """
        Get notified of native balance changes of an account.

        Args:
            address: Account address
            callback: Called with the new lamport balance

        Returns:
            Subscription handle for ``unsubscribe_account``
        """
        require_public_key(address)
        if self.ws_client is None:
            self.ws_client = AccountSubscriptionClient(self.config.solana)
        return await self.ws_client.subscribe(address, callback)

    async def unsubscribe_account(self, handle: int) -> bool:
        """Cancel a subscription made with ``subscribe_account``."""
        if self.ws_client is None:
            return False
        return await self.ws_client.unsubscribe(handle)

    async def resolve_address(self, query: str) -> str:
        """
        Turn user input into a wallet address.

        Args:
            query: A base58 address or a ``.sol`` / ``.skr`` domain

        Returns:
            The wallet address

        Raises:
            InvalidAddressError: If the input is neither a valid address nor a resolvable domain
        """
        candidate = query.strip()
        if validate_public_key(candidate):
            return candidate
        if is_domain(candidate) and self.name_client is not None:
            address = await self.name_client.resolve_domain(candidate)
            if address:
                log_with_context(logger, "info", "Resolved domain", domain=candidate, address=address)
                return address
        raise InvalidAddressError(query)

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        """
        Build a complete snapshot of a wallet.

        Args:
            address: Wallet address

        Returns:
            The snapshot; degraded sections are listed in ``errors``

        Raises:
            InvalidAddressError: If the address is invalid (no network call is made)
            SnapshotUnavailableError: If the balance or SOL price cannot be fetched
        """
        require_public_key(address)
        engine = self.config.engine
        errors: Dict[str, Any] = {}

        log_with_context(logger, "info", "Snapshot phase started", address=address, phase="balance")
        sol_balance, sol_price = await self._fetch_balance_and_price(address)

        await pace(engine.phase_pause)
        log_with_context(logger, "info", "Snapshot phase started", address=address, phase="tokens")
        tokens = await self._fetch_tokens(address, errors)

        await pace(engine.phase_pause)
        log_with_context(logger, "info", "Snapshot phase started", address=address, phase="details")
        details = await self._fetch_details(address, sol_balance, errors)

        staked = details["staking"]
        snapshot = WalletSnapshot(
            address=address,
            sol_balance=sol_balance,
            sol_price_usd=sol_price,
            total_value_usd=compute_total_value(sol_balance, sol_price, tokens, staked),
            tokens=tokens,
            nfts=details["nfts"],
            transactions=details["transactions"],
            staked_tokens=staked,
            balance_history=details["balance_history"],
            last_updated=datetime.now(timezone.utc),
            errors=errors
        )
        log_with_context(
            logger, "info", "Snapshot assembled",
            address=address, total_value_usd=round(snapshot.total_value_usd, 2),
            degraded=sorted(errors)
        )
        return snapshot

    async def _fetch_balance_and_price(self, address: str) -> Tuple[float, float]:
        tasks = [
            asyncio.ensure_future(self.fetch_native_balance(address)),
            asyncio.ensure_future(self.native_price.get_price())
        ]
        try:
            sol_balance, sol_price = await with_deadline(
                asyncio.gather(*tasks), self.config.engine.balance_deadline, "balance"
            )
        except Exception as e:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Balance phase failed for {address}: {e}")
            raise SnapshotUnavailableError(
                f"Balance or SOL price unavailable for {address}: {e}", phase="balance"
            ) from e
        return sol_balance, sol_price

    async def _fetch_tokens(self, address: str, errors: Dict[str, Any]) -> List[TokenHolding]:
        try:
            return await with_deadline(
                self.token_service.get_token_holdings(address), self.config.engine.token_deadline, "tokens"
            )
        except Exception as e:
            errors["tokens"] = error_code_of(e)
            logger.warning(f"Token holdings unavailable for {address}: {e}")
            return []

    async def _fetch_details(self, address: str, sol_balance: float, errors: Dict[str, Any]) -> Dict[str, Any]:
        limit = self.config.engine.sub_fetch_deadline
        fetches: Dict[str, Awaitable[Any]] = {
            "nfts": self.nft_service.get_nfts(address),
            "transactions": self.transaction_service.get_recent_activity(address),
            "balance_history": self.balance_history_service.get_balance_history(address, sol_balance),
            "staking": self.staking_service.get_staked_positions(address),
        }
        defaults = {"nfts": [], "transactions": [], "balance_history": [sol_balance], "staking": []}

        results = await asyncio.gather(
            *(with_deadline(fetches[name], limit, name) for name in DETAIL_SECTIONS),
            return_exceptions=True
        )

        details: Dict[str, Any] = {}
        for name, result in zip(DETAIL_SECTIONS, results):
            if isinstance(result, Exception):
                errors[name] = error_code_of(result)
                logger.warning(f"{name} unavailable for {address}: {result}")
                details[name] = defaults[name]
            elif isinstance(result, BaseException):
                raise result
            else:
                details[name] = result
        return details
