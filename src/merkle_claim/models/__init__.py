"""Data models for the merkle_claim client."""

from merkle_claim.models.claims import (
    ClaimCandidate,
    ClaimRequest,
    ClaimStatusRecord,
    EligibleClaim,
    ManifestSource,
    SessionPhase,
    SessionState,
    Severity,
    SourceOrigin,
    StatusLookup,
    StatusMessage,
)
from merkle_claim.models.config import ClaimConfig

__all__ = [
    "ClaimCandidate", "ClaimRequest", "ClaimStatusRecord", "EligibleClaim",
    "ManifestSource", "SessionPhase", "SessionState", "Severity",
    "SourceOrigin", "StatusLookup", "StatusMessage",
    "ClaimConfig",
]
