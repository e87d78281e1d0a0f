"""Field decoders and entry variants for claim manifests.

Decoders never raise on bad input: each returns either ``Ok(value)`` or a
``FieldError`` naming the offending field path. The parser decides what to
do with the first error it sees.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Generic, Iterator, Mapping, TypeVar, Union

from merkle_claim.errors import MalformedManifest
from merkle_claim.stellar.addresses import canonical_address

T = TypeVar("T")

_HEX32 = re.compile(r"^[0-9a-f]{64}$")
_DECIMAL = re.compile(r"^[0-9]+$")


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class FieldError:
    path: str
    reason: str

    def to_exception(self) -> MalformedManifest:
        return MalformedManifest(self.path, self.reason)


Decoded = Union[Ok[T], FieldError]


def is_present(value: Any) -> bool:
    """Missing, null and empty-string fields all count as absent."""
    return value is not None and value != ""


# ---------------------------------------------------------------------------
# Field decoders
# ---------------------------------------------------------------------------


def decode_address(value: Any, path: str) -> Decoded[str]:
    if not isinstance(value, str) or not value.strip():
        return FieldError(path, "must be an address string.")
    try:
        return Ok(canonical_address(value))
    except ValueError:
        return FieldError(path, f"is not a valid address ({value!r}).")


def decode_optional_address(value: Any, path: str) -> Decoded[str | None]:
    if not is_present(value):
        return Ok(None)
    return decode_address(value, path)


def decode_hex32(value: Any, path: str) -> Decoded[bytes]:
    if not isinstance(value, str):
        return FieldError(path, "must be 32-byte hex.")
    normalized = value.strip().lower()
    if normalized.startswith("0x"):
        normalized = normalized[2:]
    if not _HEX32.match(normalized):
        return FieldError(path, "must be 32-byte hex.")
    return Ok(bytes.fromhex(normalized))


def decode_proof(value: Any, path: str) -> Decoded[tuple[bytes, ...]]:
    """A missing proof is an empty proof; a present one must be a list of hex nodes."""
    if value is None:
        return Ok(())
    if not isinstance(value, list):
        return FieldError(path, "must be an array.")
    nodes: list[bytes] = []
    for i, node in enumerate(value):
        decoded = decode_hex32(node, f"{path}[{i}]")
        if isinstance(decoded, FieldError):
            return decoded
        nodes.append(decoded.value)
    return Ok(tuple(nodes))


def decode_uint(value: Any, path: str) -> Decoded[int]:
    """Decimal string, JSON number or int -> non-negative arbitrary-precision int."""
    # bool is an int subclass; a JSON true is not an amount
    if isinstance(value, bool):
        return FieldError(path, "must be a number or string.")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return FieldError(path, "must be an integer.")
        result = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.match(text):
            return FieldError(path, f"must be a decimal integer string ({value!r}).")
        result = int(text)
    else:
        return FieldError(path, "must be a number or string.")
    if result < 0:
        return FieldError(path, "must be non-negative.")
    return Ok(result)


# ---------------------------------------------------------------------------
# Entry variants
# ---------------------------------------------------------------------------

# Fields a campaign claim inherits from its campaign unless it sets them itself
INHERITED_FIELDS = ("mint", "vault", "distributor", "root", "merkleRoot")


@dataclass(frozen=True)
class FlatClaimEntry:
    """An object in the top-level ``claims`` list."""

    position: int
    record: Mapping[str, Any]

    @property
    def id(self) -> str:
        return f"claim:{self.position}"

    @property
    def path(self) -> str:
        return f"claims[{self.position}]"

    def locate(self, *names: str) -> tuple[Any, str]:
        """First present field among *names*, with its path."""
        for name in names:
            if is_present(self.record.get(name)):
                return self.record[name], f"{self.path}.{name}"
        return None, f"{self.path}.{names[0]}"

    def default_label(self) -> str:
        for key in ("label", "campaignLabel"):
            if isinstance(self.record.get(key), str):
                return self.record[key]
        return f"Claim {self.position + 1}"


@dataclass(frozen=True)
class CampaignClaimEntry:
    """An object in ``campaigns[i].claims``, inheriting campaign fields."""

    campaign_position: int
    position: int
    campaign: Mapping[str, Any]
    record: Mapping[str, Any]

    @property
    def id(self) -> str:
        return f"campaign:{self.campaign_position}:claim:{self.position}"

    @property
    def campaign_path(self) -> str:
        return f"campaigns[{self.campaign_position}]"

    @property
    def path(self) -> str:
        return f"{self.campaign_path}.claims[{self.position}]"

    def locate(self, *names: str) -> tuple[Any, str]:
        """First present field among *names*, falling back to the campaign."""
        for name in names:
            if is_present(self.record.get(name)):
                return self.record[name], f"{self.path}.{name}"
        if all(name in INHERITED_FIELDS for name in names):
            for name in names:
                if is_present(self.campaign.get(name)):
                    return self.campaign[name], f"{self.campaign_path}.{name}"
        return None, f"{self.path}.{names[0]}"

    def default_label(self) -> str:
        if isinstance(self.record.get("label"), str):
            return self.record["label"]
        for key in ("label", "id"):
            if isinstance(self.campaign.get(key), str):
                return self.campaign[key]
        return f"Campaign {self.campaign_position + 1}"


ManifestEntry = Union[FlatClaimEntry, CampaignClaimEntry]


def iter_entries(document: Mapping[str, Any]) -> Iterator[ManifestEntry]:
    """Yield claim entries in declaration order: flat claims, then campaigns.

    Entries that are not JSON objects are skipped, as are campaigns that
    are not objects. Everything else is handed on for strict decoding.
    """
    claims = document.get("claims")
    if isinstance(claims, list):
        for i, record in enumerate(claims):
            if isinstance(record, dict):
                yield FlatClaimEntry(position=i, record=record)

    campaigns = document.get("campaigns")
    if isinstance(campaigns, list):
        for ci, campaign in enumerate(campaigns):
            if not isinstance(campaign, dict):
                continue
            campaign_claims = campaign.get("claims")
            if not isinstance(campaign_claims, list):
                continue
            for j, record in enumerate(campaign_claims):
                if isinstance(record, dict):
                    yield CampaignClaimEntry(
                        campaign_position=ci,
                        position=j,
                        campaign=campaign,
                        record=record,
                    )
