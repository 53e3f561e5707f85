"""
Transaction history resolver.

Recent signatures are fetched once, then the parsed transactions are fetched
in small paced batches. Each transaction becomes an ``ActivityRecord``; a
transaction whose detail cannot be fetched still yields an ``unknown`` record.
"""

from typing import Dict, List, Optional, Sequence, Union

from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import EngineConfig
from solana_portfolio.constants import LAMPORTS_PER_SOL
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.portfolio import ActivityRecord, ActivityStatus, ActivityType, Direction
from solana_portfolio.models.rpc import ParsedTransaction, SignatureInfo, TransactionMeta
from solana_portfolio.utils.batching import settle_in_batches

logger = get_logger(__name__)

TransactionResult = Union[Optional[ParsedTransaction], BaseException]


async def fetch_transaction_details(
    client: SolanaClient,
    signatures: Sequence[SignatureInfo],
    batch_size: int,
    pause: float
) -> List[TransactionResult]:
    """Fetch parsed transactions for ``signatures`` in paced batches.

    Args:
        client: Solana client
        signatures: Signature entries, newest first
        batch_size: Transactions fetched concurrently per batch
        pause: Delay between batches, in seconds

    Returns:
        One transaction, None (unknown to the node) or exception per signature
    """
    return await settle_in_batches(
        lambda sig: client.get_transaction(sig.signature),
        signatures,
        batch_size,
        pause
    )


def wallet_index(tx: ParsedTransaction, wallet: str) -> int:
    """Position of ``wallet`` among the transaction's account keys, or -1."""
    try:
        return tx.account_keys.index(wallet)
    except ValueError:
        return -1


def native_delta(tx: ParsedTransaction, index: int) -> Optional[float]:
    """Change of the native balance at ``index``, in SOL."""
    meta = tx.meta
    if meta is None or index < 0:
        return None
    if index >= len(meta.pre_balances) or index >= len(meta.post_balances):
        return None
    return (meta.post_balances[index] - meta.pre_balances[index]) / LAMPORTS_PER_SOL


def token_deltas(meta: TransactionMeta, wallet: str) -> Dict[str, Dict[str, int]]:
    """Raw token balance changes of accounts owned by ``wallet``, per mint.

    Returns:
        ``{mint: {"delta": raw_change, "decimals": decimals}}`` for changed mints only
    """
    amounts: Dict[str, Dict[str, int]] = {}
    for sign, balances in ((-1, meta.pre_token_balances), (1, meta.post_token_balances)):
        for balance in balances:
            if balance.owner != wallet:
                continue
            entry = amounts.setdefault(balance.mint, {"delta": 0, "decimals": balance.ui_token_amount.decimals})
            entry["delta"] += sign * int(balance.ui_token_amount.amount)
    return {mint: entry for mint, entry in amounts.items() if entry["delta"] != 0}


def classify_token_activity(meta: TransactionMeta, wallet: str) -> Optional[ActivityType]:
    """NFT if a zero-decimals mint moved; swap if mints moved in opposite directions."""
    deltas = token_deltas(meta, wallet)
    if any(entry["decimals"] == 0 for entry in deltas.values()):
        return ActivityType.NFT
    if len(deltas) >= 2:
        signs = {entry["delta"] > 0 for entry in deltas.values()}
        if signs == {True, False}:
            return ActivityType.SWAP
    return None


def counterparty_of(keys: List[str], index: int) -> Optional[str]:
    """The other party of a simple transaction, chosen by position."""
    if index == 0 and len(keys) > 1:
        return keys[1]
    if index > 0:
        return keys[0]
    return None


def unknown_record(sig: SignatureInfo) -> ActivityRecord:
    """Record for a transaction whose detail is unavailable."""
    return ActivityRecord(
        signature=sig.signature,
        timestamp=sig.block_time,
        type=ActivityType.UNKNOWN,
        status=ActivityStatus.FAILED if sig.err else ActivityStatus.SUCCESS,
        fee=0.0
    )


def parse_activity(
    tx: ParsedTransaction,
    sig: SignatureInfo,
    wallet: str,
    dust_threshold: float = 0.000001
) -> ActivityRecord:
    """
    Turn a parsed transaction into an activity record for ``wallet``.

    Args:
        tx: Parsed transaction
        sig: Signature entry the transaction was fetched for
        wallet: Tracked wallet address
        dust_threshold: Smallest native change, in SOL, reported as a transfer

    Returns:
        The activity record
    """
    meta = tx.meta
    if meta is None:
        return unknown_record(sig)

    index = wallet_index(tx, wallet)
    activity_type = ActivityType.UNKNOWN
    amount = None
    direction = None

    delta = native_delta(tx, index)
    if delta is not None and abs(delta) > dust_threshold:
        activity_type = ActivityType.TRANSFER
        amount = delta
        direction = Direction.IN if delta > 0 else Direction.OUT

    token_activity = classify_token_activity(meta, wallet)
    if token_activity is not None:
        activity_type = token_activity

    return ActivityRecord(
        signature=sig.signature,
        timestamp=tx.block_time if tx.block_time is not None else sig.block_time,
        type=activity_type,
        status=ActivityStatus.FAILED if meta.err else ActivityStatus.SUCCESS,
        fee=meta.fee / LAMPORTS_PER_SOL,
        amount=amount,
        direction=direction,
        counterparty=counterparty_of(tx.account_keys, index)
    )


class TransactionService:
    """Resolves the recent activity of a wallet."""

    def __init__(self, solana_client: SolanaClient, config: EngineConfig):
        self.solana_client = solana_client
        self.config = config

    async def get_recent_activity(self, owner: str) -> List[ActivityRecord]:
        """
        Get the most recent activity records of a wallet, newest first.

        Args:
            owner: Wallet address

        Returns:
            One record per recent signature

        Raises:
            PortfolioError: If the signature list cannot be fetched
        """
        signatures = await self.solana_client.get_signatures_for_address(owner, limit=self.config.transaction_limit)
        details = await fetch_transaction_details(
            self.solana_client,
            signatures,
            self.config.transaction_batch_size,
            self.config.transaction_batch_pause
        )

        records = []
        for sig, detail in zip(signatures, details):
            if isinstance(detail, ParsedTransaction):
                records.append(parse_activity(detail, sig, owner, self.config.dust_threshold))
                continue
            if isinstance(detail, BaseException):
                logger.debug(f"Transaction detail for {sig.signature} failed: {detail}")
            records.append(unknown_record(sig))

        logger.debug(f"Resolved {len(records)} activity records for {owner}")
        return records
