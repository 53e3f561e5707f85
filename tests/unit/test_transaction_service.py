"""Unit tests for the transaction history resolver.

This module tests activity parsing and the paced detail fetch.
"""

import pytest

from solana_portfolio.models.portfolio import ActivityStatus, ActivityType, Direction
from solana_portfolio.services.transaction_service import (
    TransactionService,
    classify_token_activity,
    parse_activity,
    unknown_record,
)
from solana_portfolio.utils.errors import SolanaRpcError
from tests.fixtures.common import (
    make_address,
    make_signature,
    make_signature_info,
    make_transaction,
    token_balance,
)

OTHER = make_address(2)
MINT_A = make_address(30)
MINT_B = make_address(31)
SOL = 1000000000


@pytest.fixture
def transaction_service(mock_solana_client, engine_config):
    """Create a TransactionService with a mock client."""
    return TransactionService(mock_solana_client, engine_config)


def test_incoming_transfer(wallet):
    # Setup
    sig = make_signature_info(make_signature(1))
    tx = make_transaction([OTHER, wallet], pre=[10 * SOL, SOL], post=[9 * SOL - 5000, 2 * SOL])

    # Execute
    record = parse_activity(tx, sig, wallet)

    # Verify
    assert record.type == ActivityType.TRANSFER
    assert record.direction == Direction.IN
    assert record.amount == 1.0
    assert record.counterparty == OTHER
    assert record.fee == 0.000005
    assert record.status == ActivityStatus.SUCCESS


def test_outgoing_transfer_amount_is_signed(wallet):
    sig = make_signature_info(make_signature(2))
    tx = make_transaction([wallet, OTHER], pre=[5 * SOL, 0], post=[4 * SOL - 5000, SOL])

    record = parse_activity(tx, sig, wallet)

    assert record.direction == Direction.OUT
    assert record.amount == -(SOL + 5000) / SOL
    assert record.counterparty == OTHER


def test_dust_changes_are_not_transfers(wallet):
    sig = make_signature_info(make_signature(3))
    tx = make_transaction([OTHER, wallet], pre=[SOL, SOL], post=[SOL, SOL + 500])

    record = parse_activity(tx, sig, wallet)

    assert record.type == ActivityType.UNKNOWN
    assert record.amount is None
    assert record.direction is None


def test_failed_transaction_status(wallet):
    sig = make_signature_info(make_signature(4), err={"InstructionError": [0, "Custom"]})
    tx = make_transaction(
        [wallet, OTHER], pre=[SOL, 0], post=[SOL - 5000, 0], err={"InstructionError": [0, "Custom"]}
    )

    record = parse_activity(tx, sig, wallet)

    assert record.status == ActivityStatus.FAILED
    assert record.fee == 0.000005


def test_swap_is_detected_from_token_balances(wallet):
    sig = make_signature_info(make_signature(5))
    tx = make_transaction(
        [wallet, OTHER],
        pre=[SOL, 0],
        post=[SOL - 5000, 0],
        pre_token=[token_balance(2, MINT_A, wallet, 100, 6)],
        post_token=[token_balance(2, MINT_A, wallet, 0, 6), token_balance(3, MINT_B, wallet, 50, 6)]
    )

    assert parse_activity(tx, sig, wallet).type == ActivityType.SWAP


def test_nft_is_detected_from_zero_decimal_mints(wallet):
    tx = make_transaction(
        [wallet, OTHER],
        pre=[SOL, 0],
        post=[SOL, 0],
        post_token=[token_balance(2, MINT_A, wallet, 1, 0)]
    )

    assert classify_token_activity(tx.meta, wallet) == ActivityType.NFT


def test_token_balances_of_other_owners_are_ignored(wallet):
    tx = make_transaction(
        [wallet, OTHER],
        pre=[SOL, 0],
        post=[SOL, 0],
        pre_token=[token_balance(2, MINT_A, OTHER, 100, 6)],
        post_token=[token_balance(2, MINT_A, OTHER, 0, 6), token_balance(3, MINT_B, OTHER, 50, 6)]
    )

    assert classify_token_activity(tx.meta, wallet) is None


def test_timestamp_falls_back_to_signature_block_time(wallet):
    sig = make_signature_info(make_signature(6), block_time=1690000000)
    tx = make_transaction([wallet, OTHER], pre=[SOL, 0], post=[SOL, 0], block_time=None)

    assert parse_activity(tx, sig, wallet).timestamp == 1690000000


def test_unknown_record_keeps_signature_data():
    sig = make_signature_info(make_signature(7), block_time=None, err={"err": 1})

    record = unknown_record(sig)

    assert record.type == ActivityType.UNKNOWN
    assert record.timestamp is None
    assert record.status == ActivityStatus.FAILED


@pytest.mark.asyncio
async def test_get_recent_activity(transaction_service, mock_solana_client, engine_config, wallet):
    """Every signature yields a record, in signature order, even without detail."""
    # Setup
    signatures = [make_signature_info(make_signature(seed)) for seed in (10, 11, 12, 13)]
    details = {
        signatures[0].signature: make_transaction([OTHER, wallet], pre=[SOL, SOL], post=[0, 2 * SOL]),
        signatures[1].signature: None,
        signatures[2].signature: SolanaRpcError("node error"),
        signatures[3].signature: make_transaction([wallet, OTHER], pre=[SOL, 0], post=[0, SOL]),
    }

    async def get_transaction(signature):
        detail = details[signature]
        if isinstance(detail, Exception):
            raise detail
        return detail

    mock_solana_client.get_signatures_for_address.return_value = signatures
    mock_solana_client.get_transaction.side_effect = get_transaction

    # Execute
    records = await transaction_service.get_recent_activity(wallet)

    # Verify
    assert [r.signature for r in records] == [s.signature for s in signatures]
    assert [r.type for r in records] == [
        ActivityType.TRANSFER, ActivityType.UNKNOWN, ActivityType.UNKNOWN, ActivityType.TRANSFER
    ]
    assert records[0].direction == Direction.IN
    assert records[3].direction == Direction.OUT
    mock_solana_client.get_signatures_for_address.assert_awaited_once_with(
        wallet, limit=engine_config.transaction_limit
    )
    assert mock_solana_client.get_transaction.await_count == 4


@pytest.mark.asyncio
async def test_get_recent_activity_without_signatures(transaction_service, wallet):
    assert await transaction_service.get_recent_activity(wallet) == []


@pytest.mark.asyncio
async def test_signature_failure_propagates(transaction_service, mock_solana_client, wallet):
    mock_solana_client.get_signatures_for_address.side_effect = SolanaRpcError("node error")

    with pytest.raises(SolanaRpcError):
        await transaction_service.get_recent_activity(wallet)
