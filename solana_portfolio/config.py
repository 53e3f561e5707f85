"""Configuration module for the Solana portfolio engine."""

# Standard library imports
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

# Third-party library imports
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env_var(key: str, default: Any = None, required: bool = False,
                validator: Optional[callable] = None) -> Any:
    """Get and validate environment variable.

    Args:
        key: Environment variable name
        default: Default value if not present
        required: If True, raises ValueError when not found
        validator: Optional validation function

    Returns:
        The environment variable value or default

    Raises:
        ValueError: If required and not found, or fails validation
    """
    value = os.environ.get(key)

    if value is None or value == "":
        if required:
            raise ValueError(f"Required environment variable '{key}' not found")
        return default

    if validator:
        try:
            return validator(value)
        except Exception as e:
            raise ValueError(f"Invalid value for environment variable '{key}': {str(e)}")

    return value


def int_validator(value: str) -> int:
    """Validate and convert string to integer.

    Args:
        value: String value to convert

    Returns:
        Integer value

    Raises:
        ValueError: If not a valid integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")


def float_validator(value: str) -> float:
    """Validate and convert string to a non-negative float.

    Args:
        value: String value to convert

    Returns:
        Float value

    Raises:
        ValueError: If not a valid number or negative
    """
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")
    if number < 0:
        raise ValueError(f"'{value}' must not be negative")
    return number


def url_validator(value: str) -> str:
    """Validate URL format.

    Args:
        value: URL to validate

    Returns:
        The validated URL

    Raises:
        ValueError: If not a valid URL format
    """
    url_pattern = re.compile(
        r'^(https?|wss?):\/\/'  # http(s):// or ws(s)://
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
        r'localhost|'  # localhost
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)

    if not url_pattern.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def commitment_validator(value: str) -> str:
    """Validate Solana commitment level.

    Args:
        value: Commitment level to validate

    Returns:
        The validated commitment level

    Raises:
        ValueError: If not a valid commitment level
    """
    valid_commitments = ("processed", "confirmed", "finalized")
    if value.lower() not in valid_commitments:
        raise ValueError(f"Commitment must be one of: {', '.join(valid_commitments)}")
    return value.lower()


def log_level_validator(value: str) -> str:
    """Validate log level.

    Args:
        value: Log level to validate

    Returns:
        The validated log level

    Raises:
        ValueError: If not a valid log level
    """
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    upper_value = value.upper()
    if upper_value not in valid_levels:
        raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
    return upper_value


DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_RPC_URL = "https://mainnet.helius-rpc.com/?api-key={api_key}"


@dataclass
class SolanaConfig:
    """Configuration for the Solana RPC, DAS and websocket endpoints."""

    rpc_url: str = DEFAULT_RPC_URL
    ws_url: Optional[str] = None
    das_url: Optional[str] = None
    commitment: str = "confirmed"
    timeout: int = 30  # seconds

    @property
    def websocket_url(self) -> str:
        """Websocket endpoint, derived from the RPC URL when not set explicitly."""
        if self.ws_url:
            return self.ws_url
        return self.rpc_url.replace("https://", "wss://").replace("http://", "ws://")

    @property
    def asset_api_url(self) -> str:
        """DAS endpoint; most providers serve it on the RPC URL itself."""
        return self.das_url or self.rpc_url


@lru_cache()
def get_solana_config() -> SolanaConfig:
    """Get Solana configuration from environment variables.

    A Helius endpoint is built from ``HELIUS_API_KEY`` when no explicit
    ``SOLANA_RPC_URL`` is set.

    Returns:
        SolanaConfig instance

    Raises:
        ValueError: If environment variables fail validation
    """
    helius_key = get_env_var("HELIUS_API_KEY")
    default_url = HELIUS_RPC_URL.format(api_key=helius_key) if helius_key else DEFAULT_RPC_URL

    return SolanaConfig(
        rpc_url=get_env_var("SOLANA_RPC_URL", default_url, validator=url_validator),
        ws_url=get_env_var("SOLANA_WS_URL", validator=url_validator),
        das_url=get_env_var("SOLANA_DAS_URL", validator=url_validator),
        commitment=get_env_var("SOLANA_COMMITMENT", "confirmed",
                               validator=commitment_validator),
        timeout=get_env_var("SOLANA_TIMEOUT", 30, validator=int_validator)
    )


@dataclass
class ProviderConfig:
    """Endpoints of the third-party HTTP providers."""

    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    native_price_url: str = "https://api.coingecko.com/api/v3/simple/price"
    sns_proxy_url: str = "https://sns-sdk-proxy.bonfida.workers.dev"
    sns_api_url: str = "https://sns-api.bonfida.com/v2"
    alldomains_url: str = "https://api.alldomains.id"
    timeout: float = 15.0


@lru_cache()
def get_provider_config() -> ProviderConfig:
    """Get provider configuration from environment variables.

    Returns:
        ProviderConfig instance
    """
    defaults = ProviderConfig()
    return ProviderConfig(
        dexscreener_url=get_env_var("DEXSCREENER_API_URL", defaults.dexscreener_url,
                                    validator=url_validator),
        native_price_url=get_env_var("NATIVE_PRICE_API_URL", defaults.native_price_url,
                                     validator=url_validator),
        sns_proxy_url=get_env_var("SNS_PROXY_URL", defaults.sns_proxy_url, validator=url_validator),
        sns_api_url=get_env_var("SNS_API_URL", defaults.sns_api_url, validator=url_validator),
        alldomains_url=get_env_var("ALLDOMAINS_API_URL", defaults.alldomains_url,
                                   validator=url_validator),
        timeout=get_env_var("PROVIDER_TIMEOUT", defaults.timeout, validator=float_validator)
    )


@dataclass
class EngineConfig:
    """Deadlines, pacing, caps and batch sizes of the aggregation engine."""

    # Deadlines (seconds)
    balance_deadline: float = 15.0
    token_deadline: float = 30.0
    sub_fetch_deadline: float = 15.0

    # Pacing (seconds)
    phase_pause: float = 0.5
    token_program_pause: float = 0.5
    transaction_batch_pause: float = 0.5

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.5

    # Caps and batch sizes
    enrichment_cap: int = 50
    metadata_fallback_cap: int = 30
    nft_cap: int = 30
    das_page_limit: int = 50
    price_batch_size: int = 30
    transaction_limit: int = 10
    history_signature_limit: int = 10
    transaction_batch_size: int = 3

    # Cache lifetimes (seconds)
    price_cache_ttl: float = 300.0
    native_price_ttl: float = 60.0

    # Smallest SOL delta treated as a transfer
    dust_threshold: float = 0.000001


@lru_cache()
def get_engine_config() -> EngineConfig:
    """Get engine configuration from environment variables.

    Returns:
        EngineConfig instance
    """
    defaults = EngineConfig()
    return EngineConfig(
        balance_deadline=get_env_var("BALANCE_DEADLINE", defaults.balance_deadline, validator=float_validator),
        token_deadline=get_env_var("TOKEN_DEADLINE", defaults.token_deadline, validator=float_validator),
        sub_fetch_deadline=get_env_var("SUB_FETCH_DEADLINE", defaults.sub_fetch_deadline, validator=float_validator),
        phase_pause=get_env_var("PHASE_PAUSE", defaults.phase_pause, validator=float_validator),
        token_program_pause=get_env_var("TOKEN_PROGRAM_PAUSE", defaults.token_program_pause,
                                        validator=float_validator),
        transaction_batch_pause=get_env_var("TRANSACTION_BATCH_PAUSE", defaults.transaction_batch_pause,
                                            validator=float_validator),
        retry_max_attempts=get_env_var("RETRY_MAX_ATTEMPTS", defaults.retry_max_attempts, validator=int_validator),
        retry_base_delay=get_env_var("RETRY_BASE_DELAY", defaults.retry_base_delay, validator=float_validator),
        enrichment_cap=get_env_var("ENRICHMENT_CAP", defaults.enrichment_cap, validator=int_validator),
        metadata_fallback_cap=get_env_var("METADATA_FALLBACK_CAP", defaults.metadata_fallback_cap,
                                          validator=int_validator),
        nft_cap=get_env_var("NFT_CAP", defaults.nft_cap, validator=int_validator),
        das_page_limit=get_env_var("DAS_PAGE_LIMIT", defaults.das_page_limit, validator=int_validator),
        price_batch_size=get_env_var("PRICE_BATCH_SIZE", defaults.price_batch_size, validator=int_validator),
        transaction_limit=get_env_var("TRANSACTION_LIMIT", defaults.transaction_limit, validator=int_validator),
        history_signature_limit=get_env_var("HISTORY_SIGNATURE_LIMIT", defaults.history_signature_limit,
                                            validator=int_validator),
        transaction_batch_size=get_env_var("TRANSACTION_BATCH_SIZE", defaults.transaction_batch_size,
                                           validator=int_validator),
        price_cache_ttl=get_env_var("PRICE_CACHE_TTL", defaults.price_cache_ttl, validator=float_validator),
        native_price_ttl=get_env_var("NATIVE_PRICE_TTL", defaults.native_price_ttl, validator=float_validator),
        dust_threshold=get_env_var("DUST_THRESHOLD", defaults.dust_threshold, validator=float_validator)
    )


@dataclass
class StakingConfig:
    """Staking integration settings.

    The resolver stays silent (no position) until both program ids are set.
    """

    program_id: Optional[str] = None
    vault_program_id: Optional[str] = None
    stake_mint: Optional[str] = None
    symbol: str = "STAKED"
    name: str = "Staked Position"
    logo_uri: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.program_id and self.vault_program_id)


@lru_cache()
def get_staking_config() -> StakingConfig:
    """Get staking configuration from environment variables.

    Returns:
        StakingConfig instance
    """
    defaults = StakingConfig()
    return StakingConfig(
        program_id=get_env_var("STAKING_PROGRAM_ID"),
        vault_program_id=get_env_var("STAKING_VAULT_PROGRAM_ID"),
        stake_mint=get_env_var("STAKING_MINT"),
        symbol=get_env_var("STAKING_SYMBOL", defaults.symbol),
        name=get_env_var("STAKING_NAME", defaults.name),
        logo_uri=get_env_var("STAKING_LOGO_URI")
    )


@dataclass
class AppConfig:
    """Comprehensive application configuration."""

    solana: SolanaConfig = field(default_factory=get_solana_config)
    providers: ProviderConfig = field(default_factory=get_provider_config)
    engine: EngineConfig = field(default_factory=get_engine_config)
    staking: StakingConfig = field(default_factory=get_staking_config)
    log_level: str = field(
        default_factory=lambda: get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator)
    )


def get_app_config() -> AppConfig:
    """Get the comprehensive application configuration."""
    return AppConfig()
