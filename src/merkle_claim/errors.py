"""Error taxonomy for the claim core.

Ineligibility is not an error: candidates that fail proof or constraint
checks are simply left out of the evaluated set.
"""

from __future__ import annotations


class ClaimError(Exception):
    """Base class for all merkle_claim errors."""


class MalformedManifest(ClaimError):
    """Manifest is not an object, or a present field fails validation."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path} {reason}" if path else reason)


class TransportFailure(ClaimError):
    """Manifest fetch or ledger RPC call failed."""


class ManifestNotFound(TransportFailure):
    """The manifest location does not exist (HTTP 404 or missing file)."""


class SubmissionFailure(ClaimError):
    """Claim transaction build, send, or confirmation failed."""

    def __init__(self, message: str, logs: list[str] | None = None) -> None:
        self.logs = list(logs or [])
        super().__init__(message)


class LedgerConfigError(ClaimError):
    """The ledger adapter is missing configuration it needs."""
