"""Tests for passdeck.loader — cached-then-fresh list loading."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from passdeck.cache import ListCache, LocalStorage
from passdeck.loader import cached_then_fresh, load_latest, stream_items, stream_vaults
from passdeck.passcli.client import PassCliClient
from passdeck.passcli.errors import PassCliError, PassCliErrorType
from passdeck.passcli.mock_data import MOCK_ITEMS, MOCK_VAULTS
from passdeck.passcli.models import Item, Vault

CACHED_VAULTS = [Vault(share_id="s1", name="Cached")]
FRESH_VAULTS = [Vault(share_id="s1", name="Fresh"), Vault(share_id="s2", name="New")]
FRESH_ITEMS = [Item(share_id="s1", item_id="i1", title="GitHub", vault_name="Fresh")]


@pytest.fixture
def cache(cache_dir):
    return ListCache(LocalStorage(cache_dir))


@pytest.fixture
def mock_client():
    client = MagicMock(spec=PassCliClient)
    client.check_authenticated = AsyncMock(return_value=True)
    client.list_vaults = AsyncMock(return_value=FRESH_VAULTS)
    client.list_items = AsyncMock(return_value=FRESH_ITEMS)
    return client


async def _collect(stream):
    return [batch async for batch in stream]


class TestCachedThenFresh:
    @pytest.mark.asyncio
    async def test_no_cache_yields_fresh_only(self):
        write = MagicMock()
        batches = await _collect(
            cached_then_fresh(lambda: None, AsyncMock(return_value=[1, 2]), write, "numbers")
        )
        assert batches == [[1, 2]]
        write.assert_called_once_with([1, 2])

    @pytest.mark.asyncio
    async def test_cache_then_fresh(self):
        batches = await _collect(
            cached_then_fresh(lambda: [0], AsyncMock(return_value=[1]), MagicMock(), "numbers")
        )
        assert batches == [[0], [1]]

    @pytest.mark.asyncio
    async def test_failure_without_cache_raises(self):
        fetch = AsyncMock(side_effect=PassCliError("down", PassCliErrorType.NETWORK_ERROR))
        write = MagicMock()
        with pytest.raises(PassCliError):
            await _collect(cached_then_fresh(lambda: None, fetch, write, "numbers"))
        write.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_with_cache_keeps_cached(self, caplog):
        fetch = AsyncMock(side_effect=PassCliError("down", PassCliErrorType.NETWORK_ERROR))
        with caplog.at_level(logging.WARNING, logger="passdeck.loader"):
            batches = await _collect(cached_then_fresh(lambda: [0], fetch, MagicMock(), "numbers"))
        assert batches == [[0]]
        assert "keeping cached data" in caplog.text

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        fetch = AsyncMock(side_effect=RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            await _collect(cached_then_fresh(lambda: [0], fetch, MagicMock(), "numbers"))


class TestStreams:
    @pytest.mark.asyncio
    async def test_vaults_cold_cache(self, mock_client, cache):
        batches = await _collect(stream_vaults(mock_client, cache))
        assert batches == [FRESH_VAULTS]
        assert cache.read_vaults() == FRESH_VAULTS

    @pytest.mark.asyncio
    async def test_vaults_warm_cache(self, mock_client, cache):
        cache.write_vaults(CACHED_VAULTS)
        batches = await _collect(stream_vaults(mock_client, cache))
        assert batches == [CACHED_VAULTS, FRESH_VAULTS]

    @pytest.mark.asyncio
    async def test_not_authenticated_without_cache(self, mock_client, cache):
        mock_client.check_authenticated.return_value = False
        with pytest.raises(PassCliError) as exc_info:
            await _collect(stream_vaults(mock_client, cache))
        assert exc_info.value.error_type is PassCliErrorType.NOT_AUTHENTICATED
        mock_client.list_vaults.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_authenticated_with_cache(self, mock_client, cache):
        cache.write_vaults(CACHED_VAULTS)
        mock_client.check_authenticated.return_value = False
        assert await load_latest(stream_vaults(mock_client, cache)) == CACHED_VAULTS

    @pytest.mark.asyncio
    async def test_items_write_full_list(self, mock_client, cache):
        assert await load_latest(stream_items(mock_client, cache)) == FRESH_ITEMS
        mock_client.list_items.assert_awaited_once_with()
        assert cache.read_items() == FRESH_ITEMS

    @pytest.mark.asyncio
    async def test_items_failure_does_not_touch_cache(self, mock_client, cache):
        cached = [Item(share_id="s1", item_id="old", title="Old", vault_name="Cached")]
        cache.write_items(cached)
        mock_client.list_items.side_effect = PassCliError("t", PassCliErrorType.TIMEOUT)
        assert await load_latest(stream_items(mock_client, cache)) == cached
        assert cache.read_items() == cached


class TestMockMode:
    @pytest.mark.asyncio
    async def test_real_vaults_never_yielded(self, cache):
        cache.write_vaults([Vault(share_id="real-share", name="Real")])
        client = PassCliClient(MagicMock(), cache=cache, mock_data=True)

        batches = await _collect(stream_vaults(client, cache))

        assert batches == [MOCK_VAULTS]
        assert cache.read_vaults() == MOCK_VAULTS

    @pytest.mark.asyncio
    async def test_real_items_never_yielded(self, cache):
        cache.write_items([Item(share_id="real-share", item_id="i", title="T", vault_name="R")])
        client = PassCliClient(MagicMock(), cache=cache, mock_data=True)

        batches = await _collect(stream_items(client, cache))

        assert batches == [MOCK_ITEMS]


class TestLoadLatest:
    @pytest.mark.asyncio
    async def test_empty_stream(self):
        async def empty():
            return
            yield

        assert await load_latest(empty()) == []
