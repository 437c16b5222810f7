"""In-process tick and candle feeds.

These implement the TickFeed / CandleFeed protocols for setups where
prices are pushed into the application (HTTP tick endpoint, replay
scripts, tests) instead of streamed from a broker connection.
"""

import asyncio
import logging
from typing import AsyncIterator

from smc_core.models import Candle, CandleBuffer, Tick

logger = logging.getLogger(__name__)


class TickSubscription:
    """Ordered tick stream for one symbol.

    The queue is registered with the feed when the subscription is
    created, so every tick published afterwards is delivered.
    """

    def __init__(self, feed: "InProcessTickFeed", symbol: str):
        self.symbol = symbol
        self._feed = feed
        self._queue: asyncio.Queue[Tick] = asyncio.Queue()
        self._closed = False

    def __aiter__(self) -> "TickSubscription":
        return self

    async def __anext__(self) -> Tick:
        if self._closed:
            raise StopAsyncIteration
        return await self._queue.get()

    def put(self, tick: Tick) -> None:
        self._queue.put_nowait(tick)

    def close(self) -> None:
        """Unregister from the feed. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._feed._unregister(self)

    async def aclose(self) -> None:
        self.close()


class InProcessTickFeed:
    """Fan out published ticks to every subscriber of the tick's symbol.

    Each subscription owns an unbounded queue, so ticks for one symbol
    are delivered to each subscriber in publish order.
    """

    def __init__(self):
        self._subscribers: dict[str, list[TickSubscription]] = {}

    async def publish(self, tick: Tick) -> int:
        """Deliver a tick to current subscribers; returns how many received it."""
        subscriptions = list(self._subscribers.get(tick.symbol, []))
        for subscription in subscriptions:
            subscription.put(tick)
        return len(subscriptions)

    def subscribe(self, symbol: str) -> TickSubscription:
        subscription = TickSubscription(self, symbol)
        self._subscribers.setdefault(symbol, []).append(subscription)
        logger.debug(f"Tick subscriber attached: {symbol}")
        return subscription

    def _unregister(self, subscription: TickSubscription) -> None:
        subscriptions = self._subscribers.get(subscription.symbol, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            self._subscribers.pop(subscription.symbol, None)
        logger.debug(f"Tick subscriber detached: {subscription.symbol}")

    def subscriber_count(self, symbol: str) -> int:
        return len(self._subscribers.get(symbol, []))


class InProcessCandleFeed:
    """Candle windows per instrument with live update fan-out.

    ``subscribe`` first replays the buffered history, then yields live
    candles as they are added.
    """

    def __init__(self, max_size: int = 200):
        self.max_size = max_size
        self._buffers: dict[str, CandleBuffer] = {}
        self._subscribers: dict[str, list[asyncio.Queue[Candle]]] = {}

    def _buffer(self, symbol: str) -> CandleBuffer:
        if symbol not in self._buffers:
            self._buffers[symbol] = CandleBuffer(symbol=symbol, max_size=self.max_size)
        return self._buffers[symbol]

    def load_history(self, symbol: str, candles: list[Candle]) -> None:
        """Seed the window for a symbol (oldest first)."""
        buffer = self._buffer(symbol)
        for candle in candles:
            buffer.add(candle)
        logger.info(f"Loaded {len(buffer)} candles for {symbol}")

    async def add(self, symbol: str, candle: Candle) -> None:
        """Add a live candle (or update the current bar) and notify subscribers."""
        self._buffer(symbol).add(candle)
        for queue in list(self._subscribers.get(symbol, [])):
            queue.put_nowait(candle)

    def get_snapshot(self, symbol: str) -> list[Candle]:
        buffer = self._buffers.get(symbol)
        return list(buffer.candles) if buffer else []

    async def subscribe(self, symbol: str, granularity: str) -> AsyncIterator[Candle]:
        queue: asyncio.Queue[Candle] = asyncio.Queue()
        self._subscribers.setdefault(symbol, []).append(queue)
        try:
            for candle in self.get_snapshot(symbol):
                yield candle
            while True:
                yield await queue.get()
        finally:
            queues = self._subscribers.get(symbol, [])
            if queue in queues:
                queues.remove(queue)
