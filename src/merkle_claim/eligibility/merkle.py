"""Leaf hashing and sorted-pair Merkle proof verification.

Leaf layout (88 bytes before hashing)::

    distributor key (32) | claimant key (32) | index u64 BE (8) | amount u128 BE (16)

Interior nodes hash the byte-wise smaller child first, so proofs carry no
left/right flags.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

from merkle_claim.stellar.addresses import address_key

HASH_SIZE = 32
MAX_INDEX = (1 << 64) - 1
MAX_AMOUNT = (1 << 128) - 1


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def compute_leaf(distributor: str, claimant: str, index: int, amount: int) -> bytes:
    """Canonical leaf hash for one (distributor, claimant, index, amount) entitlement.

    Raises ValueError if an address is invalid or a value does not fit
    its fixed-width field.
    """
    if not 0 <= index <= MAX_INDEX:
        raise ValueError(f"index {index} does not fit in u64")
    if not 0 <= amount <= MAX_AMOUNT:
        raise ValueError(f"amount {amount} does not fit in u128")
    return _sha256(
        address_key(distributor)
        + address_key(claimant)
        + index.to_bytes(8, "big")
        + amount.to_bytes(16, "big")
    )


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two sibling nodes in byte order."""
    if a <= b:
        return _sha256(a + b)
    return _sha256(b + a)


def compute_root(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    node = leaf
    for sibling in proof:
        node = hash_pair(node, sibling)
    return node


def verify_sorted_proof(leaf: bytes, proof: Sequence[bytes], root: bytes) -> bool:
    """True iff folding *proof* over *leaf* reproduces *root*."""
    if len(root) != HASH_SIZE or any(len(node) != HASH_SIZE for node in proof):
        return False
    return compute_root(leaf, proof) == root
