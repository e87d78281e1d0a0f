"""Token registry cache - token decimals shared across claim sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from merkle_claim.interfaces.ledger import DistributorLedger

log = logging.getLogger(__name__)


class TokenRegistryCache:
    """Reference-counted cache of token decimal precision.

    Passed explicitly to each orchestrator instead of living at module
    level. The backing table is created on first lookup. Invalidation
    policy: none. Entries live as long as the process, and a holder
    releasing its reference does not evict anything.

    Only successful lookups are cached; a mint whose decimals could not
    be read is asked for again on the next load.
    """

    def __init__(self, ledger: DistributorLedger) -> None:
        self._ledger = ledger
        self._decimals: dict[str, int] | None = None
        self._pending: dict[str, asyncio.Future[int | None]] = {}
        self._refs = 0

    @property
    def refs(self) -> int:
        return self._refs

    def acquire(self) -> TokenRegistryCache:
        self._refs += 1
        return self

    def release(self) -> None:
        if self._refs <= 0:
            raise RuntimeError("TokenRegistryCache released more times than acquired")
        self._refs -= 1

    def cached(self, mint: str) -> int | None:
        if self._decimals is None:
            return None
        return self._decimals.get(mint)

    async def get_decimals(self, mint: str) -> int | None:
        """Decimals for *mint*, fetching at most once per concurrent burst."""
        if self._decimals is None:
            self._decimals = {}
        if mint in self._decimals:
            return self._decimals[mint]

        pending = self._pending.get(mint)
        if pending is not None:
            return await pending

        future: asyncio.Future[int | None] = asyncio.get_running_loop().create_future()
        self._pending[mint] = future
        try:
            decimals = await self._ledger.get_token_decimals(mint)
        except asyncio.CancelledError:
            # Waiters on this mint get no value; only the cancelled caller raises
            future.set_result(None)
            raise
        except Exception as exc:
            log.warning("Token decimals lookup failed for %s: %s", mint[:16], exc)
            decimals = None
        finally:
            self._pending.pop(mint, None)

        if decimals is not None:
            self._decimals[mint] = decimals
            log.debug("Cached decimals for %s (%d)", mint[:16], decimals)
        future.set_result(decimals)
        return decimals

    async def get_many(self, mints: Iterable[str]) -> dict[str, int | None]:
        unique = list(dict.fromkeys(mints))
        values = await asyncio.gather(*(self.get_decimals(m) for m in unique))
        return dict(zip(unique, values))
