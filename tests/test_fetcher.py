"""Manifest fetcher: HTTP status mapping, local files, JSON decoding."""

from __future__ import annotations

import json

import httpx
import pytest

from merkle_claim.errors import MalformedManifest, ManifestNotFound, TransportFailure
from merkle_claim.manifest.fetcher import HttpManifestFetcher

URL = "https://claims.example.com/manifest.json"


def make_fetcher(handler) -> tuple[HttpManifestFetcher, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return HttpManifestFetcher(timeout=2, client=client), seen


async def test_fetch_remote_json():
    fetcher, seen = make_fetcher(lambda r: httpx.Response(200, json={"claims": []}))

    assert await fetcher.fetch(URL) == {"claims": []}
    assert seen[0].headers["Cache-Control"] == "no-store"


async def test_remote_404_is_not_found():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(404))

    with pytest.raises(ManifestNotFound, match="404"):
        await fetcher.fetch(URL)


async def test_remote_server_error_is_transport_failure():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(503))

    with pytest.raises(TransportFailure) as exc_info:
        await fetcher.fetch(URL)

    assert not isinstance(exc_info.value, ManifestNotFound)
    assert str(exc_info.value) == "Unable to load claim manifest (503 Service Unavailable)."


async def test_connection_error_is_transport_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher, _ = make_fetcher(refuse)

    with pytest.raises(TransportFailure, match="connection refused"):
        await fetcher.fetch(URL)


async def test_timeout_is_transport_failure():
    def stall(request):
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher, _ = make_fetcher(stall)

    with pytest.raises(TransportFailure, match="timed out after 2s"):
        await fetcher.fetch(URL)


async def test_invalid_json_is_malformed():
    fetcher, _ = make_fetcher(lambda r: httpx.Response(200, text="<html>"))

    with pytest.raises(MalformedManifest, match="not valid JSON"):
        await fetcher.fetch(URL)


async def test_local_file(tmp_path):
    path = tmp_path / "claims-manifest.json"
    path.write_text(json.dumps({"campaigns": []}))

    assert await HttpManifestFetcher().fetch(str(path)) == {"campaigns": []}


async def test_missing_local_file(tmp_path):
    with pytest.raises(ManifestNotFound):
        await HttpManifestFetcher().fetch(str(tmp_path / "absent.json"))
