"""Unit tests for the native balance history reconstruction."""

import pytest

from solana_portfolio.services.balance_history import BalanceHistoryService, reconstruct_balance_history
from solana_portfolio.utils.errors import DeadlineExceededError, SolanaRpcError
from tests.fixtures.common import make_address, make_signature, make_signature_info, make_transaction

OTHER = make_address(2)
SOL = 1000000000


@pytest.fixture
def history_service(mock_solana_client, engine_config):
    return BalanceHistoryService(mock_solana_client, engine_config)


def test_reconstruct_orders_oldest_to_newest(wallet):
    """Three transactions give four points ending with the current balance."""
    # newest first: 3 -> 4, 2 -> 3, 1 -> 2
    transactions = [
        make_transaction([OTHER, wallet], pre=[10 * SOL, 3 * SOL], post=[9 * SOL, 4 * SOL]),
        make_transaction([wallet, OTHER], pre=[2 * SOL, 0], post=[3 * SOL, 0]),
        make_transaction([OTHER, wallet], pre=[10 * SOL, SOL], post=[9 * SOL, 2 * SOL]),
    ]

    history = reconstruct_balance_history(4.0, transactions, wallet)

    assert history == [1.0, 2.0, 3.0, 4.0]
    assert history[-1] == 4.0


def test_reconstruct_skips_transactions_without_the_wallet(wallet):
    transactions = [
        make_transaction([OTHER, make_address(3)], pre=[SOL, SOL], post=[SOL, SOL]),
        make_transaction([OTHER, wallet], pre=[SOL, 5 * SOL], post=[SOL, 6 * SOL]),
    ]

    assert reconstruct_balance_history(6.0, transactions, wallet) == [5.0, 6.0]


def test_reconstruct_without_transactions(wallet):
    assert reconstruct_balance_history(1.25, [], wallet) == [1.25]


@pytest.mark.asyncio
async def test_get_balance_history(history_service, mock_solana_client, engine_config, wallet):
    # Setup
    signatures = [make_signature_info(make_signature(seed)) for seed in (20, 21, 22)]
    details = {
        signatures[0].signature: make_transaction([OTHER, wallet], pre=[SOL, 2 * SOL], post=[0, 3 * SOL]),
        signatures[1].signature: None,
        signatures[2].signature: make_transaction([OTHER, wallet], pre=[SOL, SOL], post=[0, 2 * SOL]),
    }

    async def get_transaction(signature):
        return details[signature]

    mock_solana_client.get_signatures_for_address.return_value = signatures
    mock_solana_client.get_transaction.side_effect = get_transaction

    # Execute
    history = await history_service.get_balance_history(wallet, 3.0)

    # Verify
    assert history == [1.0, 2.0, 3.0]
    mock_solana_client.get_signatures_for_address.assert_awaited_once_with(
        wallet, limit=engine_config.history_signature_limit
    )


@pytest.mark.asyncio
async def test_get_balance_history_skips_failed_details(history_service, mock_solana_client, wallet):
    signatures = [make_signature_info(make_signature(seed)) for seed in (23, 24)]

    async def get_transaction(signature):
        if signature == signatures[0].signature:
            raise DeadlineExceededError("getTransaction", 1.0)
        return make_transaction([OTHER, wallet], pre=[SOL, 7 * SOL], post=[0, 8 * SOL])

    mock_solana_client.get_signatures_for_address.return_value = signatures
    mock_solana_client.get_transaction.side_effect = get_transaction

    assert await history_service.get_balance_history(wallet, 8.0) == [7.0, 8.0]


@pytest.mark.asyncio
async def test_get_balance_history_without_signatures(history_service, mock_solana_client, wallet):
    assert await history_service.get_balance_history(wallet, 2.0) == [2.0]
    mock_solana_client.get_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_balance_history_never_raises(history_service, mock_solana_client, wallet):
    mock_solana_client.get_signatures_for_address.side_effect = SolanaRpcError("node error")

    assert await history_service.get_balance_history(wallet, 2.0) == [2.0]
