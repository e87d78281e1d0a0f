"""ManifestFetcher protocol - loads a raw manifest document."""

from __future__ import annotations

from typing import Any, Protocol


class ManifestFetcher(Protocol):
    """Fetches and JSON-decodes a manifest from a URL or local path."""

    async def fetch(self, location: str) -> Any:
        """Return the decoded JSON document, untyped."""
        ...
