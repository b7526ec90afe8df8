"""
Local list cache — last-known vaults and items for instant display.

Two independent slots, each stored as ``{"data": [...], "timestamp": ms}``
JSON text in a tiny file-backed key-value store. Entries older than the TTL
read as absent; so does anything that fails to decode. Callers always follow
a read with a fresh fetch (see ``passdeck.loader``).
"""

from __future__ import annotations

import json
import logging
import os
import stat
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from passdeck.passcli.models import Item, Vault

logger = logging.getLogger(__name__)

ITEMS_CACHE_KEY = "proton_pass_items_cache"
VAULTS_CACHE_KEY = "proton_pass_vaults_cache"
CACHE_TTL_SECONDS = 5 * 60

ModelT = TypeVar("ModelT", bound=BaseModel)


class LocalStorage:
    """File-backed string key-value store, one owner-only file per key."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.directory / f"{safe}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        # Created 600 so the contents are never readable by others.
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(value)
        tmp.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 600 even if a stale tmp file existed
        os.replace(tmp, path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class ListCache:
    """Vault and item list slots with a shared TTL."""

    def __init__(
        self,
        storage: LocalStorage,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _read(self, key: str, model: type[ModelT]) -> list[ModelT] | None:
        try:
            raw = self.storage.get_item(key)
            if not raw:
                return None
            cached = json.loads(raw)
            age_ms = self._now_ms() - float(cached["timestamp"])
            if age_ms >= self.ttl_seconds * 1000:
                return None
            return [model.model_validate(entry) for entry in cached["data"]]
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", key, e)
            return None

    def _write(self, key: str, records: Sequence[BaseModel]) -> None:
        payload = {
            "data": [r.model_dump(mode="json") for r in records],
            "timestamp": self._now_ms(),
        }
        self.storage.set_item(key, json.dumps(payload))

    def read_vaults(self) -> list[Vault] | None:
        return self._read(VAULTS_CACHE_KEY, Vault)

    def write_vaults(self, vaults: Sequence[Vault]) -> None:
        self._write(VAULTS_CACHE_KEY, vaults)

    def read_items(self) -> list[Item] | None:
        return self._read(ITEMS_CACHE_KEY, Item)

    def write_items(self, items: Sequence[Item]) -> None:
        self._write(ITEMS_CACHE_KEY, items)

    def clear(self) -> None:
        self.storage.remove_item(ITEMS_CACHE_KEY)
        self.storage.remove_item(VAULTS_CACHE_KEY)
