"""
TOTP refresh cycle.

Codes rotate on 30-second boundaries of the Unix epoch. ``TotpRefreshCycle``
ticks once a second, recomputes the seconds left in the current window from
the wall clock (so it self-corrects after a suspend) and, when a new window
starts, re-fetches every code concurrently. A failed fetch leaves that item's
previous code in place.

The cycle owns its task: create one per view, ``start()`` it when the view
appears and ``await stop()`` (or use ``async with``) when it goes away.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from passdeck.passcli.client import PassCliClient
from passdeck.passcli.errors import PassCliError
from passdeck.passcli.models import Item

logger = logging.getLogger(__name__)

TOTP_PERIOD_SECONDS = 30


def totp_remaining_seconds(now: float | None = None) -> int:
    """Seconds left in the current TOTP window, in [1, 30]."""
    seconds = math.floor(time.time() if now is None else now)
    return TOTP_PERIOD_SECONDS - (seconds % TOTP_PERIOD_SECONDS)


def totp_window(now: float) -> int:
    """Index of the 30-second window containing ``now``."""
    return math.floor(now) // TOTP_PERIOD_SECONDS


def format_totp_code(code: str) -> str:
    """Group a 6-digit code as ``123 456``; other lengths pass through."""
    if len(code) == 6:
        return f"{code[:3]} {code[3:]}"
    return code


def _log_refresh_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("TOTP refresh failed: %s", task.exception())


@dataclass(frozen=True)
class TotpEntry:
    item: Item
    code: str | None = None


class TotpRefreshCycle:
    """Countdown plus batch refresh of TOTP codes for the displayed items."""

    def __init__(
        self,
        client: PassCliClient,
        *,
        on_tick: Callable[[int], None] | None = None,
        on_refresh: Callable[[list[TotpEntry]], None] | None = None,
        clock: Callable[[], float] = time.time,
        tick_interval: float = 1.0,
    ) -> None:
        self.client = client
        self.on_tick = on_tick
        self.on_refresh = on_refresh
        self.tick_interval = tick_interval
        self._clock = clock
        self._entries: list[TotpEntry] = []
        now = clock()
        self._remaining = totp_remaining_seconds(now)
        self._window = totp_window(now)
        self._task: asyncio.Task | None = None
        self._refresh_task: asyncio.Task | None = None

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def entries(self) -> list[TotpEntry]:
        return list(self._entries)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_items(self, items: Iterable[Item]) -> None:
        """Replace the displayed items, keeping known codes for items still shown."""
        known = {e.item.key: e.code for e in self._entries}
        self._entries = [
            TotpEntry(item=item, code=known.get(item.key)) for item in items if item.has_totp
        ]

    async def load(self, items: Iterable[Item]) -> list[TotpEntry]:
        """Set the items and fetch their codes once."""
        self.set_items(items)
        return await self.refresh()

    async def _fetch(self, entry: TotpEntry) -> TotpEntry:
        share_id, item_id = entry.item.key
        try:
            code = await self.client.get_totp_code(share_id, item_id)
        except PassCliError as e:
            logger.debug("TOTP refresh failed for %s: %s", entry.item.title, e.error_type)
            return entry
        return replace(entry, code=code)

    async def refresh(self) -> list[TotpEntry]:
        """Fetch every code concurrently; failures keep the previous code."""
        snapshot = list(self._entries)
        updated = await asyncio.gather(*(self._fetch(e) for e in snapshot))
        by_key = {e.item.key: e for e in updated}
        # Items replaced while the batch was in flight are not overwritten.
        self._entries = [by_key[e.item.key] if e in snapshot else e for e in self._entries]
        if self.on_refresh is not None:
            self.on_refresh(self.entries)
        return self.entries

    def tick(self) -> bool:
        """Recompute the countdown. Returns True once per new window."""
        now = self._clock()
        self._remaining = totp_remaining_seconds(now)
        window = totp_window(now)
        rolled_over = window != self._window
        self._window = window
        if self.on_tick is not None:
            self.on_tick(self._remaining)
        return rolled_over

    def _start_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            logger.debug("TOTP refresh still running, skipping this window")
            return
        self._refresh_task = asyncio.create_task(self.refresh(), name="totp-refresh")
        self._refresh_task.add_done_callback(_log_refresh_failure)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if self.tick():
                self._start_refresh()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("TOTP refresh cycle already running")
        self._task = asyncio.create_task(self._run(), name="totp-cycle")

    async def stop(self) -> None:
        """Cancel the tick loop and any in-flight refresh, and wait for both."""
        tasks = [t for t in (self._task, self._refresh_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        self._refresh_task = None

    async def __aenter__(self) -> TotpRefreshCycle:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
