"""Manifest loading - source resolution, fetching and normalization."""

from merkle_claim.manifest.fetcher import HttpManifestFetcher
from merkle_claim.manifest.parser import ManifestParser
from merkle_claim.manifest.source import resolve_manifest_source

__all__ = ["HttpManifestFetcher", "ManifestParser", "resolve_manifest_source"]
