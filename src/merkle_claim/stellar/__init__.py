"""Stellar/Soroban integration components."""

from merkle_claim.stellar.ledger import SorobanDistributorLedger
from merkle_claim.stellar.registry import TokenRegistryCache

__all__ = ["SorobanDistributorLedger", "TokenRegistryCache"]
