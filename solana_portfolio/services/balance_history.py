"""
Native balance history reconstruction.

Starting from the current balance, recent transactions are walked from newest
to oldest. Every transaction that touches the wallet contributes the balance
the wallet had right before it.
"""

from typing import Iterable, List

from solana_portfolio.clients.solana_client import SolanaClient
from solana_portfolio.config import EngineConfig
from solana_portfolio.constants import LAMPORTS_PER_SOL
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.rpc import ParsedTransaction
from solana_portfolio.services.transaction_service import fetch_transaction_details, wallet_index

logger = get_logger(__name__)


def reconstruct_balance_history(
    current_balance: float,
    transactions: Iterable[ParsedTransaction],
    wallet: str
) -> List[float]:
    """
    Rebuild the native balance series from newest-first transactions.

    Args:
        current_balance: Balance now, in SOL
        transactions: Parsed transactions, newest first
        wallet: Tracked wallet address

    Returns:
        Balances oldest to newest; the last element is ``current_balance``
    """
    points = [current_balance]
    for tx in transactions:
        index = wallet_index(tx, wallet)
        if tx.meta is None or index < 0 or index >= len(tx.meta.pre_balances):
            continue
        points.append(tx.meta.pre_balances[index] / LAMPORTS_PER_SOL)
    points.reverse()
    return points


class BalanceHistoryService:
    """Builds a chartable native balance series for a wallet."""

    def __init__(self, solana_client: SolanaClient, config: EngineConfig):
        self.solana_client = solana_client
        self.config = config

    async def get_balance_history(self, owner: str, current_balance: float) -> List[float]:
        """
        Get the native balance series of a wallet, oldest to newest.

        Never raises: without transactions, or when the signature list cannot
        be fetched, the series is just ``[current_balance]``. Transactions
        whose detail cannot be fetched are left out.

        Args:
            owner: Wallet address
            current_balance: Balance now, in SOL

        Returns:
            Balance series ending with ``current_balance``
        """
        try:
            signatures = await self.solana_client.get_signatures_for_address(
                owner, limit=self.config.history_signature_limit
            )
            if not signatures:
                return [current_balance]
            details = await fetch_transaction_details(
                self.solana_client,
                signatures,
                self.config.transaction_batch_size,
                self.config.transaction_batch_pause
            )
        except Exception as e:
            logger.warning(f"Balance history unavailable for {owner}: {e}")
            return [current_balance]

        transactions = [detail for detail in details if isinstance(detail, ParsedTransaction)]
        return reconstruct_balance_history(current_balance, transactions, owner)
