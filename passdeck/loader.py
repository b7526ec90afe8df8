"""
Cache-first loading for launcher commands.

Each ``stream_*`` function is an async generator that yields the cached list
first (when one is fresh enough) and then the authoritative list from
pass-cli, which also overwrites the cache. When the fresh fetch fails after
cached data was already yielded, the failure is logged and the generator
simply ends, so the caller keeps showing what it has. With nothing yielded
the error propagates to the caller.

Usage:
    async for items in stream_items(client, cache):
        render(items)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import TypeVar

from passdeck.cache import ListCache
from passdeck.passcli.client import PassCliClient
from passdeck.passcli.errors import ERROR_MESSAGES, PassCliError, PassCliErrorType
from passdeck.passcli.models import Item, Vault

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def cached_then_fresh(
    read_cached: Callable[[], list[T] | None],
    fetch_fresh: Callable[[], Awaitable[list[T]]],
    write_cache: Callable[[Sequence[T]], None],
    label: str,
) -> AsyncIterator[list[T]]:
    """Yield cached data (if any), then fresh data; see module docstring."""
    cached = read_cached()
    if cached is not None:
        logger.debug("Serving %d cached %s", len(cached), label)
        yield cached

    try:
        fresh = await fetch_fresh()
    except PassCliError as e:
        if cached is None:
            raise
        logger.warning("Refreshing %s failed (%s), keeping cached data", label, e.error_type)
        return

    write_cache(fresh)
    yield fresh


async def _require_auth(client: PassCliClient) -> None:
    if not await client.check_authenticated():
        raise PassCliError(
            ERROR_MESSAGES[PassCliErrorType.NOT_AUTHENTICATED],
            PassCliErrorType.NOT_AUTHENTICATED,
        )


def _read_after_mock_clear(
    client: PassCliClient, read: Callable[[], list[T] | None]
) -> Callable[[], list[T] | None]:
    def read_cached() -> list[T] | None:
        # Mock mode must drop real cached lists before anything is yielded.
        client.ensure_mock_cache_cleared()
        return read()

    return read_cached


def stream_vaults(client: PassCliClient, cache: ListCache) -> AsyncIterator[list[Vault]]:
    async def fetch() -> list[Vault]:
        await _require_auth(client)
        return await client.list_vaults()

    return cached_then_fresh(
        _read_after_mock_clear(client, cache.read_vaults),
        fetch,
        cache.write_vaults,
        "vaults",
    )


def stream_items(client: PassCliClient, cache: ListCache) -> AsyncIterator[list[Item]]:
    """All items across vaults (the item slot always holds the full list)."""

    async def fetch() -> list[Item]:
        await _require_auth(client)
        return await client.list_items()

    return cached_then_fresh(
        _read_after_mock_clear(client, cache.read_items),
        fetch,
        cache.write_items,
        "items",
    )


async def load_latest(stream: AsyncIterator[list[T]]) -> list[T]:
    """Drain a stream and return the last list it produced."""
    latest: list[T] = []
    async for batch in stream:
        latest = batch
    return latest
