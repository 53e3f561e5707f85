"""Async Solana JSON-RPC client.

Every method validates its address arguments, issues one retried JSON-RPC
call and returns typed results.
"""

# Standard library imports
from typing import Any, Dict, List, Optional

# Third-party library imports
from pydantic import ValidationError

# Internal imports
from solana_portfolio.clients.base_client import JsonRpcClient
from solana_portfolio.config import SolanaConfig, get_solana_config
from solana_portfolio.constants import LAMPORTS_PER_SOL
from solana_portfolio.logging_config import get_logger
from solana_portfolio.models.rpc import ParsedTokenAccount, ParsedTransaction, ProgramAccount, SignatureInfo
from solana_portfolio.utils.errors import InvalidAddressError, SchemaMismatchError
from solana_portfolio.utils.validation import require_public_key, validate_transaction_signature

# Get logger
logger = get_logger(__name__)


class SolanaClient(JsonRpcClient):
    """Client for interacting with the Solana blockchain."""

    provider = "solana-rpc"

    def __init__(self, config: Optional[SolanaConfig] = None, **kwargs: Any):
        """Initialize the Solana client.

        Args:
            config: Solana configuration. Defaults to environment-based config.
            **kwargs: See ``BaseHttpClient``
        """
        self.config = config or get_solana_config()
        kwargs.setdefault("timeout", self.config.timeout)
        super().__init__(self.config.rpc_url, **kwargs)

    def _options(self, **extra: Any) -> Dict[str, Any]:
        options = {"commitment": self.config.commitment}
        options.update(extra)
        return options

    def _expect_value(self, result: Any, method: str) -> Any:
        """Unwrap ``{"context": ..., "value": ...}`` responses."""
        if not isinstance(result, dict) or "value" not in result:
            raise SchemaMismatchError(f"{method} response has no value", provider=self.provider)
        return result["value"]

    async def get_balance(self, address: str) -> int:
        """Get the lamport balance of an account.

        Args:
            address: Account address

        Returns:
            Balance in lamports

        Raises:
            InvalidAddressError: If the address is invalid
        """
        require_public_key(address)
        value = self._expect_value(await self._make_request("getBalance", [address, self._options()]),
                                   "getBalance")
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchemaMismatchError("getBalance value is not an integer", provider=self.provider)
        return value

    async def get_sol_balance(self, address: str) -> float:
        """Get the balance of an account in SOL."""
        return await self.get_balance(address) / LAMPORTS_PER_SOL

    async def get_token_accounts_by_owner(self, owner: str, program_id: str) -> List[ParsedTokenAccount]:
        """Get the parsed token accounts of an owner under one token program.

        Entries that do not match the parsed token account schema are skipped.

        Args:
            owner: Owner address
            program_id: Token program id

        Returns:
            Parsed token accounts

        Raises:
            InvalidAddressError: If the owner is invalid
        """
        require_public_key(owner)
        result = await self._make_request(
            "getTokenAccountsByOwner",
            [owner, {"programId": program_id}, self._options(encoding="jsonParsed")]
        )
        entries = self._expect_value(result, "getTokenAccountsByOwner")
        if not isinstance(entries, list):
            raise SchemaMismatchError("getTokenAccountsByOwner value is not a list", provider=self.provider)

        accounts = []
        for entry in entries:
            try:
                accounts.append(ParsedTokenAccount.model_validate(entry))
            except (ValidationError, ValueError) as e:
                logger.debug(f"Skipping unparseable token account: {e}")
        return accounts

    async def get_program_accounts(
        self,
        program_id: str,
        filters: Optional[List[Dict[str, Any]]] = None
    ) -> List[ProgramAccount]:
        """Get the accounts owned by a program, with base64 data.

        Args:
            program_id: Program id
            filters: ``dataSize`` / ``memcmp`` filters

        Returns:
            Matching program accounts

        Raises:
            InvalidAddressError: If the program id is invalid
            SchemaMismatchError: If the response cannot be parsed
        """
        require_public_key(program_id)
        options = self._options(encoding="base64")
        if filters:
            options["filters"] = filters
        result = await self._make_request("getProgramAccounts", [program_id, options])
        if isinstance(result, dict) and "value" in result:
            result = result["value"]
        if not isinstance(result, list):
            raise SchemaMismatchError("getProgramAccounts result is not a list", provider=self.provider)
        try:
            return [ProgramAccount.model_validate(entry) for entry in result]
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected getProgramAccounts entry: {e}", provider=self.provider) from e

    async def get_signatures_for_address(self, address: str, limit: int = 10) -> List[SignatureInfo]:
        """Get the most recent signatures involving an address, newest first.

        Args:
            address: Account address
            limit: Maximum number of signatures

        Returns:
            Signature entries

        Raises:
            InvalidAddressError: If the address is invalid
            SchemaMismatchError: If the response cannot be parsed
        """
        require_public_key(address)
        result = await self._make_request("getSignaturesForAddress", [address, self._options(limit=limit)])
        if not isinstance(result, list):
            raise SchemaMismatchError("getSignaturesForAddress result is not a list", provider=self.provider)
        try:
            return [SignatureInfo.model_validate(entry) for entry in result]
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected signature entry: {e}", provider=self.provider) from e

    async def get_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        """Get a parsed transaction.

        Args:
            signature: Transaction signature

        Returns:
            The transaction, or None if the node does not know it

        Raises:
            InvalidAddressError: If the signature is malformed
            SchemaMismatchError: If the response cannot be parsed
        """
        if not validate_transaction_signature(signature):
            raise InvalidAddressError(signature)
        result = await self._make_request(
            "getTransaction",
            [signature, self._options(encoding="jsonParsed", maxSupportedTransactionVersion=0)]
        )
        if result is None:
            return None
        try:
            return ParsedTransaction.model_validate(result)
        except ValidationError as e:
            raise SchemaMismatchError(f"Unexpected transaction payload: {e}", provider=self.provider) from e
