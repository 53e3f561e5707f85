"""Unit tests for address validation and the error taxonomy."""

import pytest

from solana_portfolio.constants import USDC_MINT
from solana_portfolio.utils.errors import (
    DeadlineExceededError,
    ErrorCode,
    InvalidAddressError,
    SnapshotUnavailableError,
    error_code_of,
)
from solana_portfolio.utils.validation import (
    require_public_key,
    shorten_address,
    validate_public_key,
    validate_transaction_signature,
)
from tests.fixtures.common import make_address, make_signature


@pytest.mark.parametrize("address", [USDC_MINT, "1" * 32, make_address(7)])
def test_valid_addresses(address):
    assert validate_public_key(address)
    assert require_public_key(address) == address


@pytest.mark.parametrize("address", [
    "",
    None,
    12345,
    "not-an-address",
    "0OIl" * 10,  # characters outside the base58 alphabet
    "1" * 31,  # too short
    "z" * 45,  # too long
    "z" * 44,  # right alphabet and length, but more than 32 bytes
])
def test_invalid_addresses(address):
    assert not validate_public_key(address)
    with pytest.raises(InvalidAddressError) as exc_info:
        require_public_key(address)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


def test_transaction_signatures():
    assert validate_transaction_signature(make_signature(3))
    assert not validate_transaction_signature("short")
    assert not validate_transaction_signature(None)


def test_shorten_address():
    assert shorten_address(USDC_MINT) == "EPjF..."


def test_error_to_dict():
    error = SnapshotUnavailableError("balance unavailable", phase="balance")

    assert error.to_dict() == {
        "code": "SERVICE_UNAVAILABLE",
        "message": "balance unavailable",
        "details": {"phase": "balance"},
    }


def test_error_code_of():
    assert error_code_of(DeadlineExceededError("op", 1.0)) == ErrorCode.TIMEOUT
    assert error_code_of(TimeoutError()) == ErrorCode.TIMEOUT
    assert error_code_of(RuntimeError("boom")) == ErrorCode.UNKNOWN_ERROR
