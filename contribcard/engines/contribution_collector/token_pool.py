"""Pool of authenticated GitHub clients, one per token, with runtime eviction.

The pool is also the admission control for the collector: its size is the
number of requests that may be in flight at once, and it only ever shrinks.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx
import structlog

from contribcard import __version__
from contribcard.core.github import API_BASE_URL
from contribcard.exceptions import ConfigurationError, QuotaExhaustedError

log = structlog.get_logger("contribcard.engine")

_DEFAULT_TIMEOUT = 30.0


@dataclass(eq=False)
class ClientLease:
    """A client handed out by the pool, bound to a single token."""

    client: httpx.AsyncClient
    token_hash: str
    evicted: bool = field(default=False, compare=False)


class TokenPool:
    """Hands out at most N concurrent clients for N tokens."""

    def __init__(
        self,
        tokens: list[str],
        *,
        base_url: str = API_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not tokens:
            raise ConfigurationError("at least one GitHub token is required")
        self._leases = [
            ClientLease(
                client=self._new_client(token, base_url, timeout, transport),
                token_hash=hashlib.sha256(token.encode()).hexdigest()[:12],
            )
            for token in tokens
        ]
        self._idle: deque[ClientLease] = deque(self._leases)
        self._size = len(self._leases)
        self._cond = asyncio.Condition()

    @staticmethod
    def _new_client(
        token: str,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None,
    ) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"contribcard/{__version__}",
        }
        return httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def size(self) -> int:
        """Number of clients not yet evicted."""
        return self._size

    async def acquire(self) -> ClientLease:
        """Wait for an idle client.

        Raises QuotaExhaustedError once every client has been evicted.
        """
        async with self._cond:
            while not self._idle:
                if self._size == 0:
                    raise QuotaExhaustedError("all GitHub tokens are close to their rate limit")
                await self._cond.wait()
            return self._idle.popleft()

    async def release(self, lease: ClientLease) -> None:
        """Return *lease* to the pool unless it was evicted."""
        if lease.evicted:
            return
        async with self._cond:
            self._idle.append(lease)
            self._cond.notify()

    async def evict(self, lease: ClientLease) -> None:
        """Remove *lease* from the pool for the rest of the run."""
        if lease.evicted:
            return
        async with self._cond:
            lease.evicted = True
            if lease in self._idle:
                self._idle.remove(lease)
            self._size -= 1
            log.warning("token_pool.evicted", token=lease.token_hash, remaining_clients=self._size)
            # Waiters must re-check: the pool may now be empty.
            self._cond.notify_all()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[ClientLease]:
        """Acquire a client for the duration of the block."""
        lease = await self.acquire()
        try:
            yield lease
        finally:
            await self.release(lease)

    async def aclose(self) -> None:
        for lease in self._leases:
            await lease.client.aclose()

    async def __aenter__(self) -> TokenPool:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
