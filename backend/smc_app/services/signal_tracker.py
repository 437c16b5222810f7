"""Signal tracker: applies live ticks to open signals.

Keeps the set of tracked, not-yet-closed signals in memory, indexed by
symbol. Each tick is evaluated against the lifecycle transition table
(smc_core.lifecycle); a committed transition is persisted first and only
then applied in memory, so a failed write never leaves memory ahead of
storage.

Locking:
- one lock per symbol keeps ticks for an instrument in arrival order
- one lock per signal guards read-evaluate-persist-commit
- the open-set lock guards add/remove and the per-tick snapshot of ids
"""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator

from smc_core.lifecycle import Transition, evaluate_tick
from smc_core.models import Signal, Tick, TrackerStats
from smc_core.protocols import NotificationCallback, SignalRepository, TickFeed
from smc_app.utils import ExponentialBackoff, RetryError, call_with_retry

logger = logging.getLogger(__name__)


class SignalTracker:
    """
    Track open signals and drive their TP/SL lifecycle from price ticks.

    This service:
    1. Loads tracked open signals from the repository
    2. Subscribes to the tick feed for every symbol with an open signal
    3. Applies each tick to the symbol's signals (at most one event per signal)
    4. Persists changes with bounded retry, then notifies callbacks
    5. Drops closed signals from the open set
    """

    def __init__(
        self,
        repository: SignalRepository,
        tick_feed: TickFeed | None = None,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        retry_max_delay: float = 5.0,
    ):
        """
        Args:
            repository: Signal persistence backend
            tick_feed: Optional live tick source; without one, ticks are
                pushed through process_tick()
            retry_attempts: Persistence attempts per transition
            retry_base_delay: First retry delay in seconds
            retry_max_delay: Retry delay cap in seconds
        """
        self.repository = repository
        self.tick_feed = tick_feed
        self.retry_attempts = retry_attempts
        self._backoff = ExponentialBackoff(
            base=retry_base_delay, max_delay=retry_max_delay
        )

        # Open signals by id, and symbol -> ids index
        self._open: dict[str, Signal] = {}
        self._by_symbol: dict[str, set[str]] = {}

        # Signals closed during this session (for stats)
        self._closed: dict[str, Signal] = {}

        self._open_lock = asyncio.Lock()
        self._symbol_locks: dict[str, asyncio.Lock] = {}
        self._symbol_lock_users: dict[str, int] = {}
        self._signal_locks: dict[str, asyncio.Lock] = {}

        # Per-symbol tick consumers (only with a tick feed, while running)
        self._consumers: dict[str, asyncio.Task] = {}
        self._running = False

        self._callbacks: list[NotificationCallback] = []

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_notification(self, callback: NotificationCallback) -> None:
        """Register callback for lifecycle events.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def off_notification(self, callback: NotificationCallback) -> None:
        """Unregister callback for lifecycle events."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ------------------------------------------------------------------
    # Open set management
    # ------------------------------------------------------------------

    async def load_signals(self, user_id: str | None = None) -> int:
        """Replace the open set with tracked open signals from the repository.

        Returns:
            Number of signals loaded
        """
        signals = await self.repository.query_open_tracked(user_id)

        async with self._open_lock:
            previous = set(self._by_symbol)
            self._open.clear()
            self._by_symbol.clear()

            for signal in signals:
                if signal.id is None or not signal.is_active:
                    continue
                self._open[signal.id] = signal
                self._by_symbol.setdefault(signal.symbol, set()).add(signal.id)

            for symbol in previous - set(self._by_symbol):
                self._detach(symbol)
            for symbol in self._by_symbol:
                self._attach(symbol)

        logger.info(
            f"Loaded {len(self._open)} open signals "
            f"across {len(self._by_symbol)} symbols"
        )
        return len(self._open)

    async def add_signal(self, signal: Signal) -> bool:
        """Start tracking a signal.

        Returns:
            False if the signal is not tracked or already closed
        """
        if signal.id is None:
            raise ValueError("Signal must be persisted before tracking")
        if not signal.is_active:
            logger.warning(f"Signal {signal.id} is not active, not tracking")
            return False

        async with self._open_lock:
            self._open[signal.id] = signal
            self._by_symbol.setdefault(signal.symbol, set()).add(signal.id)
            self._attach(signal.symbol)

        logger.info(f"Tracking signal: {signal.id} ({signal.symbol} {signal.direction.value})")
        return True

    async def remove_signal(self, signal_id: str) -> bool:
        """Forget a signal, open or closed this session.

        Returns:
            False if the tracker did not know the signal
        """
        async with self._open_lock:
            removed = self._unindex(signal_id)
            closed = self._closed.pop(signal_id, None)
        if removed is None and closed is None:
            return False

        self._signal_locks.pop(signal_id, None)
        logger.info(f"Stopped tracking signal: {signal_id}")
        return True

    def _unindex(self, signal_id: str) -> Signal | None:
        """Remove a signal from the open set (caller holds the open-set lock)."""
        signal = self._open.pop(signal_id, None)
        if signal is None:
            return None

        ids = self._by_symbol.get(signal.symbol)
        if ids is not None:
            ids.discard(signal_id)
            if not ids:
                del self._by_symbol[signal.symbol]
                self._detach(signal.symbol)
                self._drop_symbol_lock(signal.symbol)
        return signal

    # ------------------------------------------------------------------
    # Tick processing
    # ------------------------------------------------------------------

    def _symbol_lock(self, symbol: str) -> asyncio.Lock:
        if symbol not in self._symbol_locks:
            self._symbol_locks[symbol] = asyncio.Lock()
        return self._symbol_locks[symbol]

    def _drop_symbol_lock(self, symbol: str) -> None:
        # Kept while any tick holds or waits on it; the last one out drops it
        if symbol not in self._by_symbol and not self._symbol_lock_users.get(symbol):
            self._symbol_locks.pop(symbol, None)

    def _signal_lock(self, signal_id: str) -> asyncio.Lock:
        if signal_id not in self._signal_locks:
            self._signal_locks[signal_id] = asyncio.Lock()
        return self._signal_locks[signal_id]

    async def process_tick(self, tick: Tick) -> list[Transition]:
        """
        Apply a tick to every open signal of its symbol.

        Returns:
            Transitions committed by this tick
        """
        committed: list[Transition] = []

        symbol = tick.symbol
        self._symbol_lock_users[symbol] = self._symbol_lock_users.get(symbol, 0) + 1
        try:
            async with self._symbol_lock(symbol):
                async with self._open_lock:
                    signal_ids = sorted(self._by_symbol.get(symbol, ()))

                for signal_id in signal_ids:
                    transition = await self._apply_tick(signal_id, tick)
                    if transition is not None:
                        committed.append(transition)
        finally:
            self._symbol_lock_users[symbol] -= 1
            if not self._symbol_lock_users[symbol]:
                del self._symbol_lock_users[symbol]
            self._drop_symbol_lock(symbol)

        # Notify OUTSIDE the symbol lock (callbacks may be slow)
        for transition in committed:
            await self._notify(transition)

        return committed

    async def _apply_tick(self, signal_id: str, tick: Tick) -> Transition | None:
        async with self._signal_lock(signal_id):
            signal = self._open.get(signal_id)
            if signal is None:
                return None

            transition = evaluate_tick(signal, tick.price, tick.time)
            if transition is None:
                return None

            try:
                await call_with_retry(
                    self.repository.update,
                    signal_id,
                    transition.changes,
                    max_attempts=self.retry_attempts,
                    backoff=self._backoff,
                )
            except RetryError as e:
                logger.error(
                    f"Skipping {transition.event.value} for {signal_id} at "
                    f"{tick.price}: persistence failed ({e.last_exception})"
                )
                return None

            async with self._open_lock:
                if signal_id not in self._open:
                    # Removed while the write was in flight
                    return None
                if transition.closes:
                    self._unindex(signal_id)
                    self._closed[signal_id] = transition.signal
                else:
                    self._open[signal_id] = transition.signal

        if transition.closes:
            self._signal_locks.pop(signal_id, None)

        logger.info(f"Signal {signal_id} {transition.event.value}: {transition.message}")
        return transition

    async def _notify(self, transition: Transition) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(transition.signal, transition)
            except Exception as e:
                logger.error(f"Notification callback error: {e}")

    # ------------------------------------------------------------------
    # Tick feed subscriptions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start consuming the tick feed for every symbol with open signals."""
        async with self._open_lock:
            self._running = True
            for symbol in self._by_symbol:
                self._attach(symbol)
        logger.info(f"Signal tracker started ({len(self._consumers)} subscriptions)")

    async def stop(self) -> None:
        """Cancel all tick consumers."""
        self._running = False
        tasks = list(self._consumers.values())
        self._consumers.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Signal tracker stopped")

    def _attach(self, symbol: str) -> None:
        if not self._running or self.tick_feed is None or symbol in self._consumers:
            return
        # Subscribe before the task runs so no tick published meanwhile is lost
        ticks = self.tick_feed.subscribe(symbol)
        task = asyncio.create_task(self._consume(symbol, ticks), name=f"ticks-{symbol}")
        task.add_done_callback(lambda _: _close_stream(ticks))
        self._consumers[symbol] = task
        logger.info(f"Subscribed to ticks: {symbol}")

    def _detach(self, symbol: str) -> None:
        task = self._consumers.pop(symbol, None)
        if task is None:
            return
        # A consumer closing its own last signal exits after the current tick
        if task is not asyncio.current_task():
            task.cancel()
        logger.info(f"Unsubscribed from ticks: {symbol}")

    async def _consume(self, symbol: str, ticks: AsyncIterator[Tick]) -> None:
        try:
            async with aclosing(ticks):
                async for tick in ticks:
                    await self.process_tick(tick)
                    if self._consumers.get(symbol) is not asyncio.current_task():
                        break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Tick consumer for {symbol} failed: {e}")
        finally:
            if self._consumers.get(symbol) is asyncio.current_task():
                del self._consumers[symbol]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_signal(self, signal_id: str) -> Signal | None:
        """Get an open signal, or one closed during this session."""
        return self._open.get(signal_id) or self._closed.get(signal_id)

    def get_open_signals(self, symbol: str | None = None) -> list[Signal]:
        if symbol:
            return [self._open[i] for i in sorted(self._by_symbol.get(symbol, ()))]
        return list(self._open.values())

    def stats(self) -> TrackerStats:
        """Win/loss summary over open signals and those closed this session."""
        return TrackerStats.from_signals(
            list(self._open.values()) + list(self._closed.values())
        )

    @property
    def subscribed_symbols(self) -> set[str]:
        """Symbols with at least one open signal."""
        return set(self._by_symbol)

    @property
    def active_count(self) -> int:
        return len(self._open)


def _close_stream(ticks: AsyncIterator[Tick]) -> None:
    # Covers a consumer cancelled before it first ran
    close = getattr(ticks, "close", None)
    if close is not None:
        close()
