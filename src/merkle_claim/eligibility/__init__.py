"""Eligibility evaluation - Merkle proofs and wallet allowlists."""

from merkle_claim.eligibility.evaluator import EligibilityEvaluator
from merkle_claim.eligibility.merkle import (
    compute_leaf,
    compute_root,
    hash_pair,
    verify_sorted_proof,
)

__all__ = [
    "EligibilityEvaluator",
    "compute_leaf", "compute_root", "hash_pair", "verify_sorted_proof",
]
