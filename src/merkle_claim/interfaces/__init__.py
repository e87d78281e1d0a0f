"""Protocol interfaces for the claim core's external collaborators."""

from merkle_claim.interfaces.fetcher import ManifestFetcher
from merkle_claim.interfaces.ledger import DistributorLedger

__all__ = ["DistributorLedger", "ManifestFetcher"]
