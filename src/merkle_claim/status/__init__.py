"""Claim status reconciliation against ledger state."""

from merkle_claim.status.resolver import ClaimStatusResolver

__all__ = ["ClaimStatusResolver"]
