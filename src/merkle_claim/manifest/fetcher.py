"""Manifest fetcher - loads manifest JSON over HTTP(S) or from a local file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from merkle_claim.errors import MalformedManifest, ManifestNotFound, TransportFailure

log = logging.getLogger(__name__)


def _is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class HttpManifestFetcher:
    """Fetches a manifest document; never retries.

    Remote locations are fetched with httpx (no caching, redirects
    followed). Anything else is treated as a local file path.
    """

    def __init__(self, timeout: int = 15, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client

    async def fetch(self, location: str) -> Any:
        if _is_remote(location):
            text = await self._fetch_remote(location)
        else:
            text = self._read_local(location)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedManifest("", f"Claim manifest is not valid JSON: {exc}") from exc

    async def _fetch_remote(self, url: str) -> str:
        log.info("Fetching claim manifest from %s", url)
        try:
            if self._client is not None:
                resp = await self._client.get(url, headers={"Cache-Control": "no-store"})
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout, connect=10),
                    follow_redirects=True,
                ) as client:
                    resp = await client.get(url, headers={"Cache-Control": "no-store"})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            message = (
                f"Unable to load claim manifest ({status} {exc.response.reason_phrase})."
            )
            if status == 404:
                raise ManifestNotFound(message) from exc
            raise TransportFailure(message) from exc
        except httpx.TimeoutException as exc:
            raise TransportFailure(
                f"Unable to load claim manifest (timed out after {self._timeout}s)."
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Unable to load claim manifest ({exc}).") from exc

        log.debug("Fetched %d bytes of manifest JSON", len(resp.content))
        return resp.text

    def _read_local(self, location: str) -> str:
        path = Path(location).expanduser()
        if not path.exists():
            raise ManifestNotFound(f"Claim manifest not found at {path}.")
        log.info("Reading claim manifest from %s", path)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TransportFailure(f"Unable to read claim manifest ({exc}).") from exc
