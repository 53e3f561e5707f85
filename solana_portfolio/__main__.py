"""Command-line entry point: print the portfolio of a wallet."""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from solana_portfolio.config import get_app_config, log_level_validator
from solana_portfolio.logging_config import configure_logging
from solana_portfolio.models.portfolio import WalletSnapshot
from solana_portfolio.services.portfolio_service import PortfolioEngine
from solana_portfolio.utils.errors import PortfolioError


def format_summary(snapshot: WalletSnapshot) -> str:
    """Human readable overview of a snapshot."""
    lines = [
        f"Wallet:      {snapshot.address}",
        f"SOL:         {snapshot.sol_balance:,.6f} (${snapshot.native_value_usd:,.2f} at ${snapshot.sol_price_usd:,.2f})",
        f"Total value: ${snapshot.total_value_usd:,.2f}",
        f"Updated:     {snapshot.last_updated.isoformat()}",
    ]
    if snapshot.tokens:
        lines.append("")
        lines.append(f"Tokens ({len(snapshot.tokens)}):")
        for token in snapshot.tokens:
            value = f"${token.value_usd:,.2f}" if token.value_usd is not None else "-"
            flag = "" if token.verified else " (unverified)"
            lines.append(f"  {token.symbol:<10} {token.ui_amount:>20,.6f} {value:>14}{flag}")
    for position in snapshot.staked_tokens:
        value = f"${position.value_usd:,.2f}" if position.value_usd is not None else "-"
        lines.append(f"Staked:      {position.staked_amount:,.6f} {position.symbol} ({value})")
    if snapshot.nfts:
        lines.append(f"NFTs:        {len(snapshot.nfts)}")
    if snapshot.transactions:
        lines.append("")
        lines.append("Recent activity:")
        for record in snapshot.transactions:
            amount = f"{record.amount:+,.6f} SOL" if record.amount is not None else ""
            lines.append(f"  {record.signature[:16]}... {record.type.value:<8} {record.status.value:<7} {amount}")
    if snapshot.is_partial:
        lines.append("")
        degraded = ", ".join(f"{name} ({code.value})" for name, code in sorted(snapshot.errors.items()))
        lines.append(f"Partial snapshot, unavailable: {degraded}")
    return "\n".join(lines)


async def run(query: str, json_output: bool = False) -> int:
    """Resolve ``query``, fetch its snapshot and print it.

    Returns:
        Process exit status
    """
    async with PortfolioEngine.from_config(get_app_config()) as engine:
        try:
            address = await engine.resolve_address(query)
            snapshot = await engine.fetch_wallet_snapshot(address)
        except PortfolioError as e:
            if json_output:
                print(json.dumps({"error": e.to_dict()}, indent=2))
            else:
                print(f"Error: {e.message}", file=sys.stderr)
            return 1

    if json_output:
        print(snapshot.model_dump_json(indent=2))
    else:
        print(format_summary(snapshot))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show the portfolio of a Solana wallet")
    parser.add_argument("wallet", help="Wallet address or .sol / .skr domain")
    parser.add_argument("--json", action="store_true", help="Output the snapshot as JSON")
    parser.add_argument("--log-level", type=log_level_validator, default=None,
                        help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_app_config().log_level)
    return asyncio.run(run(args.wallet, args.json))


if __name__ == "__main__":
    sys.exit(main())
