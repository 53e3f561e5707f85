"""Decoders for the fixed-layout staking accounts.

Both decoders are pure functions over raw account bytes. Each account type
has an exact size; anything else raises ``LayoutError`` instead of being read
at the wrong offsets.

Stake account (``stake_account_size`` bytes)::

    [owner_offset : owner_offset + 32]    owner public key
    [amount_offset : amount_offset + 8]   principal, u64 little endian

Share vault configuration (``vault_config_size`` bytes)::

    [share_price_offset : share_price_offset + 8]   share price, u64 little endian
"""

import base64
import binascii
import struct
from dataclasses import dataclass
from typing import List

import base58

from solana_portfolio.utils.errors import LayoutError

PUBKEY_SIZE = 32
U64 = struct.Struct("<Q")


@dataclass(frozen=True)
class StakeLayout:
    """Sizes, offsets and scales of the staking accounts."""

    stake_account_size: int = 120
    owner_offset: int = 8
    amount_offset: int = 72
    vault_config_size: int = 136
    share_price_offset: int = 104
    principal_decimals: int = 6
    share_price_scale: int = 1_000_000_000


DEFAULT_LAYOUT = StakeLayout()


@dataclass(frozen=True)
class StakeAccount:
    owner: str
    raw_principal: int
    principal: float


@dataclass(frozen=True)
class ShareVault:
    raw_share_price: int
    share_price: float


def _require_size(data: bytes, expected: int, kind: str) -> None:
    if len(data) != expected:
        raise LayoutError(f"{kind} must be {expected} bytes, got {len(data)}", expected, len(data))


def decode_account_data(data: List[str]) -> bytes:
    """Decode the ``[payload, "base64"]`` data of a program account.

    Raises:
        LayoutError: If the encoding is not base64 or the payload is invalid
    """
    if len(data) != 2 or data[1] != "base64":
        raise LayoutError("Account data is not base64 encoded", 0, 0)
    try:
        return base64.b64decode(data[0], validate=True)
    except (binascii.Error, ValueError) as e:
        raise LayoutError(f"Invalid base64 account data: {e}", 0, 0) from e


def decode_stake_account(data: bytes, layout: StakeLayout = DEFAULT_LAYOUT) -> StakeAccount:
    """Decode a stake account.

    Args:
        data: Raw account bytes
        layout: Account layout

    Returns:
        Owner and principal (raw and scaled by ``10**principal_decimals``)

    Raises:
        LayoutError: If ``data`` is not exactly ``stake_account_size`` bytes
    """
    _require_size(data, layout.stake_account_size, "Stake account")
    owner_bytes = data[layout.owner_offset:layout.owner_offset + PUBKEY_SIZE]
    (raw_principal,) = U64.unpack_from(data, layout.amount_offset)
    return StakeAccount(
        owner=base58.b58encode(owner_bytes).decode("ascii"),
        raw_principal=raw_principal,
        principal=raw_principal / 10 ** layout.principal_decimals
    )


def decode_share_vault(data: bytes, layout: StakeLayout = DEFAULT_LAYOUT) -> ShareVault:
    """Decode the share vault configuration account.

    Args:
        data: Raw account bytes
        layout: Account layout

    Returns:
        Share price (raw and scaled by ``share_price_scale``)

    Raises:
        LayoutError: If ``data`` is not exactly ``vault_config_size`` bytes
    """
    _require_size(data, layout.vault_config_size, "Share vault config")
    (raw_share_price,) = U64.unpack_from(data, layout.share_price_offset)
    return ShareVault(raw_share_price=raw_share_price, share_price=raw_share_price / layout.share_price_scale)
