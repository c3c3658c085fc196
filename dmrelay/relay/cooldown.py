"""Per-user cooldown tracking."""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, field
from threading import RLock

from loguru import logger

DEFAULT_COOLDOWN_MS = 10_000
DEFAULT_SWEEP_INTERVAL_MS = 60_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CooldownCheck:
    """Result of a cooldown lookup."""

    allowed: bool
    remaining_seconds: int = 0


@dataclass
class CooldownTracker:
    """
    Minimum interval between accepted messages, keyed by user id.

    Entries hold an expiry timestamp; anything at or past its expiry is inert
    and gets reaped by :meth:`sweep`.
    """

    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    _expiries: dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.cooldown_ms = max(0, int(self.cooldown_ms))

    def check(self, user_id: str, now: int | None = None) -> CooldownCheck:
        """Check whether a user may send a message right now."""
        now = now_ms() if now is None else now
        with self._lock:
            expiry = self._expiries.get(str(user_id))
        if expiry is None or now >= expiry:
            return CooldownCheck(allowed=True)
        return CooldownCheck(allowed=False, remaining_seconds=math.ceil((expiry - now) / 1000))

    def arm(self, user_id: str, now: int | None = None) -> int:
        """Start the cooldown window for a user. Returns the expiry timestamp."""
        now = now_ms() if now is None else now
        expiry = now + self.cooldown_ms
        with self._lock:
            self._expiries[str(user_id)] = expiry
        return expiry

    def release(self, user_id: str) -> None:
        """Drop a user's cooldown so they can retry immediately."""
        with self._lock:
            self._expiries.pop(str(user_id), None)

    def sweep(self, now: int | None = None) -> int:
        """Remove expired entries. Returns how many were removed."""
        now = now_ms() if now is None else now
        with self._lock:
            expired = [user_id for user_id, expiry in self._expiries.items() if expiry <= now]
            for user_id in expired:
                del self._expiries[user_id]
        return len(expired)

    def expiry_for(self, user_id: str) -> int | None:
        """Get the stored expiry for a user, if any."""
        with self._lock:
            return self._expiries.get(str(user_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._expiries)


class CooldownSweeper:
    """Periodically reaps expired cooldown entries on the running event loop."""

    def __init__(self, tracker: CooldownTracker, interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS):
        self.tracker = tracker
        self.interval_s = max(1, int(interval_ms)) / 1000
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.debug(f"Cooldown sweeper started (every {self.interval_s:g}s)")

    def stop(self) -> None:
        """Stop the sweep loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_s)
                if self._running:
                    self._tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Cooldown sweep error: {e}")

    def _tick(self) -> None:
        removed = self.tracker.sweep()
        if removed:
            logger.debug(f"Cooldown sweep removed {removed} expired entries")
