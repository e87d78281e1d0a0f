"""Claim status resolver - reconciles eligible candidates with ledger state."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from merkle_claim.interfaces.ledger import DistributorLedger
from merkle_claim.models.claims import ClaimCandidate, EligibleClaim, StatusLookup

log = logging.getLogger(__name__)


class ClaimStatusResolver:
    """Looks up the claim-status record for each eligible candidate.

    Lookups run concurrently (bounded by ``max_concurrent``) and are
    isolated: one failed fetch marks only its own candidate with a
    ``lookup_error``; the rest of the batch still resolves.
    """

    def __init__(self, ledger: DistributorLedger, max_concurrent: int = 8) -> None:
        self._ledger = ledger
        self._max_concurrent = max(1, max_concurrent)

    async def resolve(
        self, candidates: Sequence[ClaimCandidate], claimant: str
    ) -> list[StatusLookup]:
        """One StatusLookup per candidate, in input order."""
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _lookup_one(candidate: ClaimCandidate) -> StatusLookup:
            async with semaphore:
                return await self._lookup(candidate, claimant)

        results = await asyncio.gather(
            *(_lookup_one(c) for c in candidates), return_exceptions=True,
        )

        lookups: list[StatusLookup] = []
        for candidate, result in zip(candidates, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                lookups.append(self._failed(candidate, claimant, result))
            else:
                lookups.append(result)

        failed = sum(1 for lookup in lookups if not lookup.ok)
        log.info(
            "Resolved claim status for %d candidate(s) (%d lookup failure(s))",
            len(lookups), failed,
        )
        return lookups

    async def resolve_claims(
        self, candidates: Sequence[ClaimCandidate], claimant: str
    ) -> list[EligibleClaim]:
        return [lookup.claim for lookup in await self.resolve(candidates, claimant)]

    async def _lookup(self, candidate: ClaimCandidate, claimant: str) -> StatusLookup:
        address = self._ledger.find_claim_status_address(candidate.distributor, claimant)
        record = await self._ledger.fetch_claim_status(address)
        return StatusLookup(claim=EligibleClaim(
            candidate=candidate,
            claim_status_address=address,
            already_claimed=bool(record and record.claimed),
            claim_status_exists=record is not None,
        ))

    def _failed(
        self, candidate: ClaimCandidate, claimant: str, exc: BaseException
    ) -> StatusLookup:
        error = str(exc) or type(exc).__name__
        log.warning("Claim status lookup failed for %s: %s", candidate.id, error)
        try:
            address = self._ledger.find_claim_status_address(candidate.distributor, claimant)
        except Exception:
            address = ""
        return StatusLookup(
            claim=EligibleClaim(
                candidate=candidate,
                claim_status_address=address,
                lookup_error=error,
            ),
            error=error,
        )
