"""Claim orchestrator - drives load, evaluate, resolve, submit and refresh."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from stellar_sdk import Keypair

from merkle_claim.display import explorer_tx_url, format_error_with_logs
from merkle_claim.eligibility.evaluator import EligibilityEvaluator
from merkle_claim.errors import ManifestNotFound, SubmissionFailure
from merkle_claim.interfaces.fetcher import ManifestFetcher
from merkle_claim.interfaces.ledger import DistributorLedger
from merkle_claim.manifest.fetcher import HttpManifestFetcher
from merkle_claim.manifest.parser import ManifestParser
from merkle_claim.manifest.source import resolve_manifest_source
from merkle_claim.models.claims import (
    ClaimRequest,
    EligibleClaim,
    ManifestSource,
    SessionPhase,
    SessionState,
    Severity,
    StatusMessage,
)
from merkle_claim.models.config import ClaimConfig
from merkle_claim.status.resolver import ClaimStatusResolver
from merkle_claim.stellar.addresses import canonical_address
from merkle_claim.stellar.ledger import SorobanDistributorLedger
from merkle_claim.stellar.registry import TokenRegistryCache

log = logging.getLogger(__name__)

MSG_CONNECT = "Connect your wallet to check claims."
MSG_CONNECT_FIRST = "Connect your wallet first."
MSG_NOT_CONFIGURED = (
    "Claim manifest is not configured. Pass --manifest <URL>, set "
    "MERKLE_CLAIM_MANIFEST_URL, or configure [manifest] default_url."
)
MSG_EMPTY = "Claim manifest loaded, but it contains no claim entries."
MSG_NONE_FOUND = "No active claims found for this wallet."


class ClaimOrchestrator:
    """Runs claim-check cycles and claim submissions for one session.

    Phases: IDLE -> LOADING -> EVALUATED -> SUBMITTING -> CONFIRMED | FAILED,
    and back to EVALUATED once the post-claim refresh lands.

    Nothing raised by the manifest, parser, resolver or ledger escapes
    load_and_check() or submit_claim(); failures become StatusMessages.
    """

    def __init__(
        self,
        ledger: DistributorLedger,
        fetcher: ManifestFetcher,
        config: ClaimConfig,
        tokens: TokenRegistryCache | None = None,
    ) -> None:
        self._ledger = ledger
        self._fetcher = fetcher
        self._cfg = config
        self._parser = ManifestParser(ledger)
        self._evaluator = EligibilityEvaluator()
        self._resolver = ClaimStatusResolver(ledger, config.max_concurrent_lookups)
        self._tokens = (tokens or TokenRegistryCache(ledger)).acquire()
        self._manifest_override: str | None = None
        self.state = SessionState()

    # ── Session ───────────────────────────────────────────

    @property
    def identity(self) -> str | None:
        return self.state.identity

    @property
    def claims(self) -> list[EligibleClaim]:
        return self.state.claims

    @property
    def status(self) -> StatusMessage | None:
        return self.state.status

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    def is_submitting(self, claim_id: str) -> bool:
        return self.state.submitting_id == claim_id

    def connect(self, identity: str) -> None:
        """Attach a wallet identity. Switching identity resets the session."""
        address = canonical_address(identity)
        if address != self.state.identity:
            log.info("Connected identity %s", address[:16])
            self.state.reset(address)

    def disconnect(self) -> None:
        if self.state.identity is not None:
            log.info("Disconnected identity %s", self.state.identity[:16])
        self.state.reset(None)

    def set_manifest_override(self, url: str | None) -> None:
        """Explicit manifest URL (the ``manifest`` query parameter)."""
        normalized = (url or "").strip() or None
        if normalized != self._manifest_override:
            self._manifest_override = normalized
            self.state.reset(self.state.identity)

    def manifest_source(self) -> ManifestSource:
        return resolve_manifest_source(
            query_url=self._manifest_override,
            env_url=self._cfg.manifest_env_url,
            app_url=self._cfg.manifest_default_url,
            fallback_path=self._cfg.manifest_fallback_path,
        )

    def close(self) -> None:
        self._tokens.release()

    def _publish(self, severity: Severity, message: str, **extra) -> StatusMessage:
        status = StatusMessage(severity=severity, message=message, **extra)
        self.state.status = status
        level = logging.WARNING if severity is Severity.ERROR else logging.INFO
        log.log(level, "%s", message.splitlines()[0] if message else message)
        return status

    # ── Claim check ───────────────────────────────────────

    async def load_and_check(self) -> list[EligibleClaim]:
        """Fetch, parse, evaluate and resolve; publish the set and a summary."""
        identity = self.state.identity
        if identity is None:
            self.state.claims = []
            self.state.phase = SessionPhase.IDLE
            self._publish(Severity.INFO, MSG_CONNECT)
            return []

        self.state.generation += 1
        generation = self.state.generation
        source = self.manifest_source()
        self.state.manifest_source = source
        self.state.phase = SessionPhase.LOADING
        self.state.status = None

        try:
            claims, decimals, summary = await self._check(identity, source)
        except Exception as exc:
            if generation != self.state.generation:
                log.info("Discarding stale claim check failure (generation %d)", generation)
                return self.state.claims
            self.state.claims = []
            self.state.decimals_by_mint = {}
            self.state.phase = SessionPhase.IDLE
            self._publish(Severity.ERROR, str(exc) or "Failed to check claims.")
            return []

        if generation != self.state.generation:
            log.info("Discarding stale claim check result (generation %d)", generation)
            return self.state.claims

        self.state.claims = claims
        self.state.decimals_by_mint = decimals
        self.state.last_checked_at = datetime.now(timezone.utc).isoformat()
        self.state.phase = SessionPhase.EVALUATED
        self.state.status = summary
        return claims

    async def _check(
        self, identity: str, source: ManifestSource
    ) -> tuple[list[EligibleClaim], dict[str, int | None], StatusMessage]:
        try:
            document = await self._fetcher.fetch(source.location)
        except ManifestNotFound:
            if not source.is_fallback:
                raise
            log.info("No manifest at fallback path %s", source.location)
            document = {}

        candidates = self._parser.parse(document)
        if not candidates:
            message = MSG_NOT_CONFIGURED if source.is_fallback else MSG_EMPTY
            return [], {}, StatusMessage(severity=Severity.INFO, message=message)

        eligible = self._evaluator.evaluate(candidates, identity)
        claims = await self._resolver.resolve_claims(eligible, identity)
        decimals = await self._tokens.get_many(c.mint for c in claims)

        if not claims:
            message = MSG_NONE_FOUND
        else:
            message = f"Found {len(claims)} claim(s) for this wallet."
            unknown = sum(1 for c in claims if c.lookup_error)
            if unknown:
                message += f" Claim status could not be read for {unknown} of them."
        return claims, decimals, StatusMessage(severity=Severity.SUCCESS, message=message)

    # ── Submission ────────────────────────────────────────

    async def submit_claim(self, entry: EligibleClaim) -> StatusMessage:
        """Submit one claim, wait for confirmation, then refresh the claim set.

        Rejected without touching the network when no identity is
        connected, the entry is already claimed, or another claim is in
        flight.
        """
        identity = self.state.identity
        if identity is None:
            return self._publish(Severity.ERROR, MSG_CONNECT_FIRST)
        if entry.already_claimed:
            return self._publish(
                Severity.ERROR, f"{entry.label} ({entry.id}) has already been claimed.",
            )
        if self.state.submitting_id is not None:
            if self.state.submitting_id == entry.id:
                message = f"Claim {entry.id} is already being submitted."
            else:
                message = (
                    f"Claim {self.state.submitting_id} is still in flight; "
                    "wait for it to finish."
                )
            return self._publish(Severity.ERROR, message)

        epoch = self.state.epoch
        self.state.submitting_id = entry.id
        self.state.phase = SessionPhase.SUBMITTING
        self.state.status = None
        log.info("Submitting claim %s (index %d)", entry.id, entry.index)
        try:
            return await self._submit(entry, identity, epoch)
        finally:
            # Session resets leave the guard set until this submission ends
            if self.state.submitting_id == entry.id:
                self.state.submitting_id = None

    async def _submit(self, entry: EligibleClaim, identity: str, epoch: int) -> StatusMessage:
        try:
            latest = await self._ledger.fetch_claim_status(entry.claim_status_address)
            if latest is not None:
                state_label = "already claimed" if latest.claimed else "already initialized"
                raise SubmissionFailure(
                    f"Claim status already exists for index {entry.index} ({state_label}). "
                    f"Status entry: {entry.claim_status_address}. "
                    "Use a new index or manifest."
                )
            tx = await self._ledger.build_claim_transaction(
                ClaimRequest.for_claim(identity, entry.candidate)
            )
            signature = await self._ledger.submit_and_confirm(tx)

        except Exception as exc:
            if epoch != self.state.epoch:
                log.info("Session changed during claim %s; dropping failure", entry.id)
                return StatusMessage(severity=Severity.ERROR, message=str(exc))
            self.state.phase = SessionPhase.FAILED
            return self._publish(Severity.ERROR, format_error_with_logs(exc, "Failed to claim."))

        if epoch != self.state.epoch:
            log.info("Session changed during claim %s; skipping refresh", entry.id)
            return StatusMessage(
                severity=Severity.SUCCESS,
                message="Claim transaction confirmed.",
                signature=signature,
            )

        self.state.phase = SessionPhase.CONFIRMED
        confirmed = self._publish(
            Severity.SUCCESS,
            "Claim transaction confirmed.",
            signature=signature,
            explorer_url=explorer_tx_url(self._cfg.explorer_base, self._cfg.network, signature),
        )
        await self.load_and_check()

        # Keep the confirmation (and its explorer link) unless the refresh failed
        if self.state.status is None or self.state.status.severity is not Severity.ERROR:
            self.state.status = confirmed
        return confirmed


@asynccontextmanager
async def open_orchestrator(
    cfg: ClaimConfig, keypair: Keypair | None = None
) -> AsyncIterator[ClaimOrchestrator]:
    """Wire a Soroban-backed orchestrator from config and close it afterwards."""
    ledger = SorobanDistributorLedger(
        rpc_url=cfg.rpc_url,
        network_passphrase=cfg.network_passphrase,
        keypair=keypair,
        distributor_factory=cfg.distributor_factory,
        confirm_timeout=cfg.confirm_timeout,
    )
    orchestrator = ClaimOrchestrator(
        ledger=ledger,
        fetcher=HttpManifestFetcher(timeout=cfg.fetch_timeout),
        config=cfg,
    )
    try:
        yield orchestrator
    finally:
        orchestrator.close()
        await ledger.close()
