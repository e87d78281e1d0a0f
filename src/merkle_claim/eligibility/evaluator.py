"""Eligibility evaluator - Merkle-proof and allowlist checks for one claimant."""

from __future__ import annotations

import logging
from typing import Iterable

from merkle_claim.eligibility.merkle import compute_leaf, verify_sorted_proof
from merkle_claim.models.claims import ClaimCandidate

log = logging.getLogger(__name__)


class EligibilityEvaluator:
    """Selects the candidates a claimant may redeem.

    Rules, in order:
    1. A wallet constraint that differs from the claimant excludes the candidate
    2. A root requires the proof to rebuild it from the claimant's leaf
    3. No root: eligible only through a matching wallet constraint

    Failing a rule is a normal outcome, never an exception.
    """

    def evaluate(
        self, candidates: Iterable[ClaimCandidate], claimant: str
    ) -> list[ClaimCandidate]:
        eligible = [c for c in candidates if self.is_eligible(c, claimant)]
        log.debug("%d candidate(s) eligible for %s", len(eligible), claimant[:16])
        return eligible

    def is_eligible(self, candidate: ClaimCandidate, claimant: str) -> bool:
        if not candidate.is_committed:
            return False
        if candidate.wallet_constraint is not None and candidate.wallet_constraint != claimant:
            return False

        if candidate.root is not None:
            try:
                leaf = compute_leaf(
                    candidate.distributor, claimant, candidate.index, candidate.amount,
                )
            except ValueError as exc:
                log.debug("Candidate %s not hashable for %s: %s", candidate.id, claimant[:16], exc)
                return False
            return verify_sorted_proof(leaf, candidate.proof, candidate.root)

        # Allowlisted wallet matched above
        return True
