"""Provider clients.

This package contains the HTTP and JSON-RPC clients the engine talks to.
"""

from solana_portfolio.clients.base_client import BaseHttpClient, JsonRpcClient
from solana_portfolio.clients.das_client import DasClient
from solana_portfolio.clients.market_client import DexScreenerClient, NativePriceClient
from solana_portfolio.clients.solana_client import SolanaClient

__all__ = [
    "BaseHttpClient",
    "DasClient",
    "DexScreenerClient",
    "JsonRpcClient",
    "NativePriceClient",
    "SolanaClient",
]
