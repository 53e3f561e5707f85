"""Unit tests for environment-based configuration."""

import pytest

from solana_portfolio.config import (
    DEFAULT_RPC_URL,
    SolanaConfig,
    StakingConfig,
    float_validator,
    get_engine_config,
    get_env_var,
    get_solana_config,
    get_staking_config,
    url_validator,
)


@pytest.fixture(autouse=True)
def clear_config_caches():
    for getter in (get_solana_config, get_engine_config, get_staking_config):
        getter.cache_clear()
    yield
    for getter in (get_solana_config, get_engine_config, get_staking_config):
        getter.cache_clear()


def test_solana_defaults(monkeypatch):
    for key in ("SOLANA_RPC_URL", "HELIUS_API_KEY", "SOLANA_WS_URL", "SOLANA_DAS_URL", "SOLANA_COMMITMENT"):
        monkeypatch.delenv(key, raising=False)

    config = get_solana_config()

    assert config.rpc_url == DEFAULT_RPC_URL
    assert config.commitment == "confirmed"
    assert config.websocket_url == "wss://api.mainnet-beta.solana.com"
    assert config.asset_api_url == DEFAULT_RPC_URL


def test_helius_key_builds_rpc_url(monkeypatch):
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    monkeypatch.setenv("HELIUS_API_KEY", "abc123")

    assert get_solana_config().rpc_url == "https://mainnet.helius-rpc.com/?api-key=abc123"


def test_explicit_urls_win(monkeypatch):
    monkeypatch.setenv("SOLANA_RPC_URL", "http://localhost:8899")
    monkeypatch.setenv("SOLANA_WS_URL", "ws://localhost:8900")
    monkeypatch.setenv("SOLANA_COMMITMENT", "Finalized")

    config = get_solana_config()

    assert config.websocket_url == "ws://localhost:8900"
    assert config.commitment == "finalized"


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("SOLANA_RPC_URL", "not a url")

    with pytest.raises(ValueError):
        get_solana_config()


def test_engine_overrides(monkeypatch):
    monkeypatch.setenv("TOKEN_DEADLINE", "12.5")
    monkeypatch.setenv("NFT_CAP", "5")

    config = get_engine_config()

    assert config.token_deadline == 12.5
    assert config.nft_cap == 5
    assert config.balance_deadline == 15.0


def test_staking_requires_both_programs(monkeypatch):
    monkeypatch.setenv("STAKING_PROGRAM_ID", "11111111111111111111111111111111")
    monkeypatch.delenv("STAKING_VAULT_PROGRAM_ID", raising=False)

    assert not get_staking_config().enabled
    assert StakingConfig(program_id="a", vault_program_id="b").enabled


def test_validators():
    assert url_validator("wss://rpc.example.com/ws") == "wss://rpc.example.com/ws"
    assert float_validator("0.5") == 0.5
    with pytest.raises(ValueError):
        float_validator("-1")
    with pytest.raises(ValueError):
        get_env_var("PORTFOLIO_TEST_MISSING", required=True)


def test_websocket_url_derivation():
    assert SolanaConfig(rpc_url="http://127.0.0.1:8899").websocket_url == "ws://127.0.0.1:8899"
