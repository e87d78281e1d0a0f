"""Token registry cache: lazy init, de-duplicated lookups, reference counting."""

from __future__ import annotations

import asyncio

import pytest

from merkle_claim.errors import TransportFailure
from merkle_claim.stellar.registry import TokenRegistryCache
from tests.factories import MINT, OTHER_MINT


async def test_lazy_table_and_caching(tokens, mock_ledger):
    mock_ledger.decimals[MINT] = 7

    assert tokens.cached(MINT) is None
    assert await tokens.get_decimals(MINT) == 7
    assert await tokens.get_decimals(MINT) == 7
    assert tokens.cached(MINT) == 7
    assert mock_ledger.decimal_calls == [MINT]


async def test_concurrent_lookups_share_one_request(tokens, mock_ledger):
    mock_ledger.decimals[MINT] = 6
    gate = asyncio.Event()
    real_lookup = mock_ledger.get_token_decimals

    async def slow(mint):
        await gate.wait()
        return await real_lookup(mint)

    mock_ledger.get_token_decimals = slow
    tasks = [asyncio.create_task(tokens.get_decimals(MINT)) for _ in range(5)]
    await asyncio.sleep(0.01)
    gate.set()

    assert await asyncio.gather(*tasks) == [6] * 5
    assert mock_ledger.decimal_calls == [MINT]


async def test_unknown_decimals_not_cached(tokens, mock_ledger):
    assert await tokens.get_decimals(MINT) is None
    mock_ledger.decimals[MINT] = 9
    assert await tokens.get_decimals(MINT) == 9
    assert mock_ledger.decimal_calls == [MINT, MINT]


async def test_lookup_error_becomes_none(tokens, mock_ledger):
    async def broken(mint):
        raise TransportFailure("rpc down")

    mock_ledger.get_token_decimals = broken

    assert await tokens.get_decimals(MINT) is None


async def test_get_many_dedupes(tokens, mock_ledger):
    mock_ledger.decimals.update({MINT: 7, OTHER_MINT: 2})

    result = await tokens.get_many([MINT, OTHER_MINT, MINT])

    assert result == {MINT: 7, OTHER_MINT: 2}
    assert sorted(mock_ledger.decimal_calls) == sorted([MINT, OTHER_MINT])


def test_reference_counting(mock_ledger):
    tokens = TokenRegistryCache(mock_ledger)

    assert tokens.acquire() is tokens
    tokens.acquire()
    assert tokens.refs == 2
    tokens.release()
    tokens.release()
    assert tokens.refs == 0
    with pytest.raises(RuntimeError):
        tokens.release()


async def test_cancelled_lookup_does_not_cancel_waiters(tokens, mock_ledger):
    mock_ledger.decimals[MINT] = 6
    gate = asyncio.Event()
    real_lookup = mock_ledger.get_token_decimals

    async def slow(mint):
        await gate.wait()
        return await real_lookup(mint)

    mock_ledger.get_token_decimals = slow
    owner = asyncio.create_task(tokens.get_decimals(MINT))
    await asyncio.sleep(0.01)
    waiter = asyncio.create_task(tokens.get_many([MINT]))
    await asyncio.sleep(0.01)

    owner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await owner

    assert await waiter == {MINT: None}
    assert tokens.cached(MINT) is None

    mock_ledger.get_token_decimals = real_lookup
    assert await tokens.get_decimals(MINT) == 6
