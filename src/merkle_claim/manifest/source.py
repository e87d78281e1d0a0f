"""Manifest source resolution.

Precedence, highest first: explicit query parameter, environment URL,
application default URL, built-in fallback path. The tier matters beyond
picking a location: an empty result from the fallback means "not
configured", from anywhere else it means "empty manifest".
"""

from __future__ import annotations

from merkle_claim.models.claims import ManifestSource, SourceOrigin
from merkle_claim.models.config import DEFAULT_FALLBACK_PATH


def resolve_manifest_source(
    query_url: str | None = None,
    env_url: str | None = None,
    app_url: str | None = None,
    fallback_path: str = DEFAULT_FALLBACK_PATH,
) -> ManifestSource:
    tiers = (
        (query_url, SourceOrigin.QUERY),
        (env_url, SourceOrigin.ENVIRONMENT),
        (app_url, SourceOrigin.APPLICATION),
    )
    for location, origin in tiers:
        if location and location.strip():
            return ManifestSource(location=location.strip(), origin=origin)
    return ManifestSource(location=fallback_path, origin=SourceOrigin.FALLBACK)
