"""Manifest parser - normalizes an untyped manifest into claim candidates."""

from __future__ import annotations

import logging
from typing import Any

from merkle_claim.errors import MalformedManifest
from merkle_claim.interfaces.ledger import DistributorLedger
from merkle_claim.manifest.decode import (
    FieldError,
    ManifestEntry,
    Ok,
    decode_address,
    decode_hex32,
    decode_optional_address,
    decode_proof,
    decode_uint,
    is_present,
    iter_entries,
)
from merkle_claim.models.claims import ClaimCandidate

log = logging.getLogger(__name__)


class ManifestParser:
    """Turns a raw manifest document into an ordered list of ClaimCandidates.

    Two shapes are scanned, in this order:
    1. ``claims``: flat claim records
    2. ``campaigns[].claims``: claim records inheriting campaign fields

    Non-object entries are skipped. A field that is present but invalid
    fails the whole manifest with MalformedManifest naming its path.
    """

    def __init__(self, ledger: DistributorLedger) -> None:
        self._ledger = ledger

    def parse(self, document: Any) -> list[ClaimCandidate]:
        if not isinstance(document, dict):
            raise MalformedManifest("", "Claim manifest must be a JSON object.")

        candidates = []
        for entry in iter_entries(document):
            decoded = self._decode_entry(entry)
            if isinstance(decoded, FieldError):
                raise decoded.to_exception()
            candidates.append(decoded.value)

        log.debug("Parsed %d claim candidate(s)", len(candidates))
        return candidates

    def _decode_entry(self, entry: ManifestEntry) -> Ok[ClaimCandidate] | FieldError:
        mint = decode_address(*entry.locate("mint"))
        if isinstance(mint, FieldError):
            return mint

        vault = decode_address(*entry.locate("vault"))
        if isinstance(vault, FieldError):
            return vault

        distributor = self._decode_distributor(entry, mint.value)
        if isinstance(distributor, FieldError):
            return distributor

        root_value, root_path = entry.locate("root", "merkleRoot")
        root: Ok[bytes | None] | FieldError = Ok(None)
        if is_present(root_value):
            root = decode_hex32(root_value, root_path)
        if isinstance(root, FieldError):
            return root

        proof = decode_proof(*entry.locate("proof"))
        if isinstance(proof, FieldError):
            return proof

        index = decode_uint(*entry.locate("index"))
        if isinstance(index, FieldError):
            return index

        amount = decode_uint(*entry.locate("amount"))
        if isinstance(amount, FieldError):
            return amount

        wallet = decode_optional_address(*entry.locate("wallet", "walletConstraint"))
        if isinstance(wallet, FieldError):
            return wallet

        return Ok(ClaimCandidate(
            id=entry.id,
            label=entry.default_label(),
            mint=mint.value,
            vault=vault.value,
            distributor=distributor.value,
            index=index.value,
            amount=amount.value,
            proof=proof.value,
            root=root.value,
            wallet_constraint=wallet.value,
        ))

    def _decode_distributor(self, entry: ManifestEntry, mint: str) -> Ok[str] | FieldError:
        value, path = entry.locate("distributor")
        if is_present(value):
            return decode_address(value, path)
        try:
            return Ok(self._ledger.find_distributor_address(mint))
        except Exception as exc:
            return FieldError(path, f"is missing and could not be derived from mint: {exc}")
