"""In-process signal repository.

Used when no database is configured and as a lightweight test backend.
Signals are stored as model copies so callers never share state with
the store.
"""

import asyncio
from typing import Any
from uuid import uuid4

from smc_core.models import Signal


class InMemorySignalRepository:
    """Dict-backed implementation of the SignalRepository protocol."""

    def __init__(self):
        self._signals: dict[str, Signal] = {}
        self._lock = asyncio.Lock()

    async def create(self, signal: Signal) -> str:
        async with self._lock:
            signal_id = signal.id or uuid4().hex
            self._signals[signal_id] = signal.model_copy(update={"id": signal_id})
            return signal_id

    async def update(self, signal_id: str, fields: dict[str, Any]) -> None:
        async with self._lock:
            current = self._signals.get(signal_id)
            if current is None:
                return
            changes = {k: v for k, v in fields.items() if k != "id"}
            self._signals[signal_id] = current.model_copy(update=changes)

    async def get_by_id(self, signal_id: str) -> Signal | None:
        async with self._lock:
            signal = self._signals.get(signal_id)
            return signal.model_copy() if signal else None

    async def query_open_tracked(self, user_id: str | None = None) -> list[Signal]:
        async with self._lock:
            signals = [
                s.model_copy()
                for s in self._signals.values()
                if s.is_active and (not user_id or s.user_id == user_id)
            ]
        return sorted(signals, key=lambda s: s.created_at)

    async def list_for_user(self, user_id: str | None = None) -> list[Signal]:
        async with self._lock:
            signals = [
                s.model_copy()
                for s in self._signals.values()
                if not user_id or s.user_id == user_id
            ]
        return sorted(signals, key=lambda s: s.created_at, reverse=True)

    async def delete(self, signal_id: str) -> bool:
        async with self._lock:
            return self._signals.pop(signal_id, None) is not None

    def __len__(self) -> int:
        return len(self._signals)
