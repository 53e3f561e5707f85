"""Solana Portfolio Package.

This package aggregates the portfolio of a Solana wallet (SOL balance, SPL
tokens, NFTs, staking positions, recent activity and balance history) from
several independent providers into one ``WalletSnapshot``.
"""

from solana_portfolio.config import AppConfig, get_app_config
from solana_portfolio.models import TokenHolding, TokenMarketData, WalletSnapshot
from solana_portfolio.services.portfolio_service import PortfolioEngine
from solana_portfolio.utils.errors import (
    ErrorCode,
    InvalidAddressError,
    PortfolioError,
    SnapshotUnavailableError,
)

__version__ = "0.1.0"
__author__ = "Solana Portfolio Contributors"

__all__ = [
    "AppConfig",
    "ErrorCode",
    "InvalidAddressError",
    "PortfolioEngine",
    "PortfolioError",
    "SnapshotUnavailableError",
    "TokenHolding",
    "TokenMarketData",
    "WalletSnapshot",
    "get_app_config",
]
