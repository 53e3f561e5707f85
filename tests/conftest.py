"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    app_config,
    engine,
    engine_config,
    mock_das_client,
    mock_market_client,
    mock_native_price_client,
    mock_solana_client,
    price_cache,
    wallet,
)
