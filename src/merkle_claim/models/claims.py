"""Claim candidate, eligibility and session records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class SessionPhase(str, Enum):
    """Orchestrator session phases."""

    IDLE = "idle"
    LOADING = "loading"
    EVALUATED = "evaluated"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SourceOrigin(str, Enum):
    """Where the active manifest location came from, highest priority first."""

    QUERY = "query"  # explicit --manifest / ?manifest=
    ENVIRONMENT = "environment"
    APPLICATION = "application"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Manifest records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClaimCandidate:
    """A unit of possible entitlement extracted from a manifest."""

    id: str  # "claim:{i}" or "campaign:{i}:claim:{j}"
    label: str
    mint: str
    vault: str
    distributor: str
    index: int  # base units, arbitrary precision
    amount: int
    proof: tuple[bytes, ...] = ()
    root: bytes | None = None
    wallet_constraint: str | None = None

    @property
    def is_committed(self) -> bool:
        """True when the candidate carries a Merkle root or an allowlist entry."""
        return self.root is not None or self.wallet_constraint is not None


@dataclass(frozen=True)
class EligibleClaim:
    """A candidate that passed evaluation, reconciled against ledger state."""

    candidate: ClaimCandidate
    claim_status_address: str
    already_claimed: bool = False
    claim_status_exists: bool = False
    lookup_error: str | None = None  # set when the status fetch failed

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def label(self) -> str:
        return self.candidate.label

    @property
    def mint(self) -> str:
        return self.candidate.mint

    @property
    def index(self) -> int:
        return self.candidate.index

    @property
    def amount(self) -> int:
        return self.candidate.amount

    @property
    def status_label(self) -> str:
        if self.lookup_error:
            return "Status Unknown"
        if self.already_claimed:
            return "Already Claimed"
        if self.claim_status_exists:
            return "Claim Status Exists"
        return "Claim Available"


@dataclass(frozen=True)
class StatusLookup:
    """Per-candidate result of a claim-status lookup."""

    claim: EligibleClaim
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClaimStatusRecord:
    """On-chain claim-status entry keyed by (distributor, claimant)."""

    address: str
    claimed: bool


@dataclass(frozen=True)
class ClaimRequest:
    """Inputs needed to build a claim transaction."""

    claimant: str
    mint: str
    vault: str
    distributor: str
    index: int
    amount: int
    proof: tuple[bytes, ...] = ()

    @classmethod
    def for_claim(cls, claimant: str, candidate: ClaimCandidate) -> ClaimRequest:
        return cls(
            claimant=claimant,
            mint=candidate.mint,
            vault=candidate.vault,
            distributor=candidate.distributor,
            index=candidate.index,
            amount=candidate.amount,
            proof=candidate.proof,
        )


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManifestSource:
    """A resolved manifest location and the precedence tier it came from."""

    location: str
    origin: SourceOrigin

    @property
    def is_fallback(self) -> bool:
        return self.origin is SourceOrigin.FALLBACK


@dataclass(frozen=True)
class StatusMessage:
    """User-facing status line published by the orchestrator."""

    severity: Severity
    message: str
    signature: str | None = None
    explorer_url: str | None = None


@dataclass
class SessionState:
    """Everything the orchestrator holds for one UI session."""

    identity: str | None = None
    manifest_source: ManifestSource | None = None
    claims: list[EligibleClaim] = field(default_factory=list)
    status: StatusMessage | None = None
    submitting_id: str | None = None  # survives reset; owned by the running submission
    phase: SessionPhase = SessionPhase.IDLE
    last_checked_at: str | None = None  # ISO 8601
    decimals_by_mint: dict[str, int | None] = field(default_factory=dict)
    generation: int = 0  # bumped by every load and every reset
    epoch: int = 0  # bumped by every reset

    def reset(self, identity: str | None) -> None:
        """Drop everything derived from a previous identity or source."""
        self.identity = identity
        self.manifest_source = None
        self.claims = []
        self.status = None
        self.phase = SessionPhase.IDLE
        self.last_checked_at = None
        self.decimals_by_mint = {}
        # Bump so in-flight work from the old session is discarded.
        self.generation += 1
        self.epoch += 1

    def find_claim(self, claim_id: str) -> EligibleClaim | None:
        for claim in self.claims:
            if claim.id == claim_id:
                return claim
        return None
