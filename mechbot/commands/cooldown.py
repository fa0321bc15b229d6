"""Per-room, per-user cooldown bookkeeping for one command."""

from __future__ import annotations

import time
from collections.abc import Callable

from ..constants import COOLDOWN_PRUNE_INTERVAL


class CooldownTable:
    """room id -> user id -> monotonic expiry.

    Nothing here schedules timers. Expiry is compared on read, and re-arming
    overwrites the stored instant, so an older arm can never clear a newer one.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        prune_interval: int = COOLDOWN_PRUNE_INTERVAL,
    ) -> None:
        self._clock = clock
        self._prune_interval = max(1, prune_interval)
        self._expiries: dict[int, dict[int, float]] = {}
        self._arms = 0

    def is_on_cooldown(self, room_id: int, user_id: int) -> bool:
        return self.remaining(room_id, user_id) > 0

    def remaining(self, room_id: int, user_id: int) -> float:
        """Seconds left on the cooldown, 0.0 when not cooling down."""
        room = self._expiries.get(room_id)
        if not room:
            return 0.0
        expiry = room.get(user_id)
        if expiry is None:
            return 0.0
        left = expiry - self._clock()
        if left <= 0:
            del room[user_id]
            if not room:
                del self._expiries[room_id]
            return 0.0
        return left

    def set_cooldown(self, room_id: int, user_id: int, duration_ms: int) -> None:
        if duration_ms <= 0:
            return
        self._expiries.setdefault(room_id, {})[user_id] = self._clock() + duration_ms / 1000
        self._arms += 1
        if self._arms % self._prune_interval == 0:
            self.prune()

    def prune(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        removed = 0
        for room_id in list(self._expiries):
            room = self._expiries[room_id]
            for user_id in [u for u, exp in room.items() if exp <= now]:
                del room[user_id]
                removed += 1
            if not room:
                del self._expiries[room_id]
        return removed

    def clear(self) -> None:
        self._expiries.clear()

    def __len__(self) -> int:
        return sum(len(room) for room in self._expiries.values())
