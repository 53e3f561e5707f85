"""Common test fixtures for the portfolio engine tests.

This module provides fixtures and payload builders that can be reused across
different test modules.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import base58
import pytest

from solana_portfolio.clients.das_client import DasClient
from solana_portfolio.clients.market_client import DexScreenerClient, NativePriceClient
from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import AppConfig, EngineConfig, ProviderConfig, SolanaConfig, StakingConfig
from solana_portfolio.models.market import DexPair
from solana_portfolio.models.rpc import DasAssetPage, ParsedTokenAccount, ParsedTransaction, SignatureInfo
from solana_portfolio.services.portfolio_service import PortfolioEngine
from solana_portfolio.services.price_cache import PriceCache


def make_address(seed: int) -> str:
    """A valid base58 public key derived from ``seed`` (1-255)."""
    return base58.b58encode(bytes([seed]) * 32).decode()


def make_signature(seed: int) -> str:
    """A valid base58 transaction signature derived from ``seed`` (1-255)."""
    return base58.b58encode(bytes([seed]) * 64).decode()


def token_account_payload(mint: str, amount: int, decimals: int, owner: Optional[str] = None) -> Dict[str, Any]:
    """One ``getTokenAccountsByOwner`` entry in ``jsonParsed`` encoding."""
    return {
        "pubkey": make_address(200),
        "account": {
            "data": {
                "parsed": {
                    "info": {
                        "mint": mint,
                        "owner": owner or make_address(1),
                        "tokenAmount": {
                            "amount": str(amount),
                            "decimals": decimals,
                            "uiAmount": amount / 10 ** decimals
                        }
                    },
                    "type": "account"
                },
                "program": "spl-token"
            },
            "lamports": 2039280
        }
    }


def make_token_account(mint: str, amount: int, decimals: int) -> ParsedTokenAccount:
    return ParsedTokenAccount.model_validate(token_account_payload(mint, amount, decimals))


def pair_payload(
    mint: str,
    price: float,
    liquidity: Optional[float],
    symbol: str = "TKN",
    name: str = "Token"
) -> Dict[str, Any]:
    """One DexScreener pair listing."""
    return {
        "chainId": "solana",
        "url": f"https://dexscreener.com/solana/{symbol.lower()}",
        "baseToken": {"address": mint, "name": name, "symbol": symbol},
        "quoteToken": {"address": make_address(250), "name": "Wrapped SOL", "symbol": "SOL"},
        "priceUsd": str(price),
        "liquidity": {"usd": liquidity},
        "priceChange": {"h24": 2.5},
        "volume": {"h24": 12000.0},
        "fdv": 1500000.0,
        "marketCap": 1200000.0,
        "info": {"imageUrl": f"https://cdn.example/{symbol.lower()}.png"}
    }


def make_pair(mint: str, price: float, liquidity: Optional[float], symbol: str = "TKN", name: str = "Token") -> DexPair:
    return DexPair.model_validate(pair_payload(mint, price, liquidity, symbol, name))


def make_signature_info(signature: str, block_time: Optional[int] = 1700000000, err: Any = None) -> SignatureInfo:
    return SignatureInfo.model_validate({
        "signature": signature,
        "slot": 250000000,
        "err": err,
        "blockTime": block_time,
        "confirmationStatus": "finalized"
    })


def token_balance(index: int, mint: str, owner: str, amount: int, decimals: int) -> Dict[str, Any]:
    return {
        "accountIndex": index,
        "mint": mint,
        "owner": owner,
        "uiTokenAmount": {"amount": str(amount), "decimals": decimals}
    }


def transaction_payload(
    keys: List[str],
    pre: List[int],
    post: List[int],
    fee: int = 5000,
    err: Any = None,
    block_time: Optional[int] = 1700000000,
    pre_token: Optional[List[Dict[str, Any]]] = None,
    post_token: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """A ``getTransaction`` result in ``jsonParsed`` encoding."""
    return {
        "slot": 250000000,
        "blockTime": block_time,
        "meta": {
            "fee": fee,
            "err": err,
            "preBalances": pre,
            "postBalances": post,
            "preTokenBalances": pre_token or [],
            "postTokenBalances": post_token or []
        },
        "transaction": {
            "signatures": [make_signature(99)],
            "message": {
                "accountKeys": [
                    {"pubkey": key, "signer": i == 0, "writable": True, "source": "transaction"}
                    for i, key in enumerate(keys)
                ]
            }
        }
    }


def make_transaction(keys: List[str], pre: List[int], post: List[int], **kwargs: Any) -> ParsedTransaction:
    return ParsedTransaction.model_validate(transaction_payload(keys, pre, post, **kwargs))


@pytest.fixture
def wallet():
    """Address of the tracked wallet."""
    return make_address(1)


@pytest.fixture
def engine_config():
    """Engine configuration without pauses and with short deadlines."""
    return EngineConfig(
        balance_deadline=1.0,
        token_deadline=1.0,
        sub_fetch_deadline=0.5,
        phase_pause=0.0,
        token_program_pause=0.0,
        transaction_batch_pause=0.0,
        retry_base_delay=0.0
    )


@pytest.fixture
def app_config(engine_config):
    """Application configuration that does not read the environment."""
    return AppConfig(
        solana=SolanaConfig(rpc_url="https://rpc.example.com"),
        providers=ProviderConfig(),
        engine=engine_config,
        staking=StakingConfig(),
        log_level="INFO"
    )


@pytest.fixture
def mock_solana_client():
    """Create a mock Solana client."""
    client = AsyncMock(spec=SolanaClient)

    # Common mock responses
    client.get_balance.return_value = 2000000000  # 2 SOL in lamports
    client.get_sol_balance.return_value = 2.0
    client.get_token_accounts_by_owner.return_value = []
    client.get_program_accounts.return_value = []
    client.get_signatures_for_address.return_value = []
    client.get_transaction.return_value = None

    return client


@pytest.fixture
def mock_das_client():
    """Create a mock DAS client."""
    client = AsyncMock(spec=DasClient)
    client.get_assets_by_owner.return_value = DasAssetPage(items=[])
    client.get_asset_batch.return_value = []
    return client


@pytest.fixture
def mock_market_client():
    """Create a mock DexScreener client."""
    client = AsyncMock(spec=DexScreenerClient)
    client.get_pairs.return_value = []
    return client


@pytest.fixture
def mock_native_price_client():
    """Create a mock native price client."""
    client = AsyncMock(spec=NativePriceClient)
    client.get_native_price.return_value = 150.0
    return client


@pytest.fixture
def price_cache(mock_market_client):
    """Price cache backed by the mock DexScreener client."""
    return PriceCache(mock_market_client, ttl=300.0, batch_size=30)


@pytest.fixture
def engine(app_config, mock_solana_client, mock_das_client, mock_market_client, mock_native_price_client):
    """Portfolio engine wired to mock clients."""
    return PortfolioEngine(
        app_config,
        solana_client=mock_solana_client,
        das_client=mock_das_client,
        market_client=mock_market_client,
        native_price_client=mock_native_price_client
    )
