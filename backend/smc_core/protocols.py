"""Collaborator protocols for data feeds and signal persistence.

Any backend (SQL database, in-process store, exchange feed, test double)
can implement these protocols to be used by the services in smc_app.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, runtime_checkable

from smc_core.lifecycle import Transition
from smc_core.models import Candle, Signal, Tick


# ---------------------------------------------------------------------------
# Callback type aliases
# ---------------------------------------------------------------------------
SignalCallback = Callable[[Signal], Awaitable[None]]
NotificationCallback = Callable[[Signal, Transition], Awaitable[None]]


@runtime_checkable
class SignalRepository(Protocol):
    """Protocol that signal storage backends must implement."""

    async def create(self, signal: Signal) -> str:
        """Persist a new signal and return its assigned ID."""
        ...

    async def update(self, signal_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to an existing signal."""
        ...

    async def get_by_id(self, signal_id: str) -> Signal | None:
        """Get a single signal by its ID."""
        ...

    async def query_open_tracked(self, user_id: str | None = None) -> list[Signal]:
        """Get tracked, not-yet-closed signals (optionally for one user)."""
        ...

    async def list_for_user(self, user_id: str | None = None) -> list[Signal]:
        """Get signals newest first (optionally for one user)."""
        ...

    async def delete(self, signal_id: str) -> bool:
        """Delete a signal; returns False when it did not exist."""
        ...


@runtime_checkable
class TickFeed(Protocol):
    """Live price ticks, one infinite ordered stream per instrument.

    Reconnection is owned by the feed; a subscription is not restartable.
    Ticks published after subscribe() returns are delivered to it.
    """

    def subscribe(self, symbol: str) -> AsyncIterator[Tick]:
        ...


@runtime_checkable
class CandleFeed(Protocol):
    """Historical backfill followed by live candle updates."""

    def subscribe(self, symbol: str, granularity: str) -> AsyncIterator[Candle]:
        ...

    def get_snapshot(self, symbol: str) -> list[Candle]:
        """Current in-memory candle window for the instrument."""
        ...
