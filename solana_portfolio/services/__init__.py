"""
Service layer of the portfolio engine.

Each resolver builds one section of a wallet snapshot; ``PortfolioEngine``
runs them and assembles the result.
"""

from solana_portfolio.services.balance_history import BalanceHistoryService
from solana_portfolio.services.metadata_service import MetadataService
from solana_portfolio.services.native_price import NativePriceService
from solana_portfolio.services.nft_service import NFTService
from solana_portfolio.services.portfolio_service import PortfolioEngine
from solana_portfolio.services.price_cache import PriceCache
from solana_portfolio.services.staking_service import StakingService
from solana_portfolio.services.token_service import TokenService
from solana_portfolio.services.transaction_service import TransactionService

__all__ = [
    "BalanceHistoryService",
    "MetadataService",
    "NativePriceService",
    "NFTService",
    "PortfolioEngine",
    "PriceCache",
    "StakingService",
    "TokenService",
    "TransactionService",
]
