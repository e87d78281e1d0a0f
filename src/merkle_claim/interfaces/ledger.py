"""DistributorLedger protocol - the ledger client the claim core depends on."""

from __future__ import annotations

from typing import Any, Protocol

from merkle_claim.models.claims import ClaimRequest, ClaimStatusRecord


class DistributorLedger(Protocol):
    """Derives distributor addresses, reads claim status, builds and submits claims."""

    def find_distributor_address(self, mint: str) -> str:
        """Deterministically derive the distributor address for a token mint."""
        ...

    def find_claim_status_address(self, distributor: str, claimant: str) -> str:
        """Derive the claim-status address for a (distributor, claimant) pair."""
        ...

    async def fetch_claim_status(self, address: str) -> ClaimStatusRecord | None:
        """Fetch a claim-status record. None if the record does not exist."""
        ...

    async def build_claim_transaction(self, request: ClaimRequest) -> Any:
        """Build (and simulate) the claim transaction for a request."""
        ...

    async def submit_and_confirm(self, transaction: Any) -> str:
        """Sign, submit and wait for confirmation. Returns the transaction hash."""
        ...

    async def get_token_decimals(self, mint: str) -> int | None:
        """Token decimal precision for display. None if it cannot be read."""
        ...
