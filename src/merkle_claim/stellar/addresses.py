"""Ledger address helpers built on stellar_sdk strkeys."""

from __future__ import annotations

from stellar_sdk import Address
from stellar_sdk.address import AddressType

# Leaf hashing needs a 32-byte key, which only these two kinds carry
_KEYED_TYPES = (AddressType.ACCOUNT, AddressType.CONTRACT)


def _parse(value: str) -> Address:
    address = Address(value.strip())
    if address.type not in _KEYED_TYPES:
        raise ValueError(f"unsupported address type: {address.type}")
    return address


def canonical_address(value: str) -> str:
    """Parse an account (G...) or contract (C...) strkey and return it canonicalized.

    Raises ValueError if the string is not a valid address.
    """
    return _parse(value).address


def address_key(value: str) -> bytes:
    """Raw 32-byte key behind an account or contract strkey."""
    return _parse(value).key


def shorten_address(address: str) -> str:
    return f"{address[:6]}...{address[-6:]}"
