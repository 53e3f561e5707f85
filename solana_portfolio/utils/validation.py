"""Validation utilities for Solana addresses and signatures."""

import re
from typing import Any

import base58

from solana_portfolio.utils.errors import InvalidAddressError

# Solana public key validation pattern (base58 format)
PUBKEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

# Transaction signatures are also base58 encoded but longer than public keys
SIGNATURE_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{43,128}$")

PUBKEY_LENGTH = 32


def validate_public_key(pubkey: Any) -> bool:
    """Validate a Solana public key.

    The key must use the base58 alphabet, be 32 to 44 characters long and
    decode to exactly 32 bytes.

    Args:
        pubkey: The public key to validate

    Returns:
        True if the public key is valid, False otherwise
    """
    if not pubkey or not isinstance(pubkey, str):
        return False
    if not PUBKEY_PATTERN.match(pubkey):
        return False
    try:
        return len(base58.b58decode(pubkey)) == PUBKEY_LENGTH
    except ValueError:
        return False


def require_public_key(pubkey: Any) -> str:
    """Return ``pubkey`` unchanged or raise ``InvalidAddressError``.

    Args:
        pubkey: The public key to validate

    Returns:
        The validated key

    Raises:
        InvalidAddressError: If the key is not a valid Solana address
    """
    if not validate_public_key(pubkey):
        raise InvalidAddressError(pubkey)
    return pubkey


def validate_transaction_signature(signature: Any) -> bool:
    """Validate a Solana transaction signature.

    Args:
        signature: The transaction signature to validate

    Returns:
        True if the signature is valid, False otherwise
    """
    if not signature or not isinstance(signature, str):
        return False
    return bool(SIGNATURE_PATTERN.match(signature))


def shorten_address(address: str, chars: int = 4) -> str:
    """Short display form of an address, e.g. ``"EPjF..."``."""
    return f"{address[:chars]}..."
