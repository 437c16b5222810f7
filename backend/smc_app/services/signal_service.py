"""Signal service: generation, persistence and operator actions."""

import asyncio
import logging
from typing import Sequence

from smc_core.models import Candle, Direction, NewsBias, Signal
from smc_core.protocols import CandleFeed, SignalCallback, SignalRepository
from smc_core.scorer import SignalScorer
from smc_app.services.signal_tracker import SignalTracker

logger = logging.getLogger(__name__)


class SignalNotFoundError(Exception):
    """Raised when an operation references an unknown signal id."""

    def __init__(self, signal_id: str):
        super().__init__(f"Signal not found: {signal_id}")
        self.signal_id = signal_id


class SignalNotTrackableError(Exception):
    """Raised when tracking is requested for a signal without trade levels."""

    def __init__(self, signal_id: str):
        super().__init__(f"Signal has no trade levels to track: {signal_id}")
        self.signal_id = signal_id


class SignalService:
    """
    Generate signals and manage their tracking state.

    Generated signals are persisted untracked; an operator starts
    lifecycle monitoring with track_signal().
    """

    def __init__(
        self,
        scorer: SignalScorer,
        repository: SignalRepository,
        tracker: SignalTracker,
        candle_feed: CandleFeed | None = None,
    ):
        self.scorer = scorer
        self.repository = repository
        self.tracker = tracker
        self.candle_feed = candle_feed

        self._signal_callbacks: list[SignalCallback] = []

    def on_signal(self, callback: SignalCallback) -> None:
        """Register callback for newly generated signals."""
        if callback not in self._signal_callbacks:
            self._signal_callbacks.append(callback)

    def off_signal(self, callback: SignalCallback) -> None:
        if callback in self._signal_callbacks:
            self._signal_callbacks.remove(callback)

    async def generate_signal(
        self,
        symbol: str,
        candles: Sequence[Candle],
        news_bias: NewsBias | None = None,
        user_id: str | None = None,
    ) -> Signal:
        """
        Score a candle window and persist the resulting signal.

        Raises:
            Exception: Repository errors propagate to the caller
        """
        signal = self.scorer.score(symbol, candles, news_bias)
        signal.user_id = user_id
        signal.tracked = False

        signal.id = await self.repository.create(signal)
        logger.info(
            f"Generated signal {signal.id}: {symbol} {signal.direction.value} "
            f"confidence={signal.confidence:.1f}"
        )

        for callback in self._signal_callbacks:
            try:
                await callback(signal)
            except Exception as e:
                logger.error(f"Signal callback error: {e}")

        return signal

    async def generate_from_feed(
        self,
        symbol: str,
        news_bias: NewsBias | None = None,
        user_id: str | None = None,
    ) -> Signal:
        """Generate a signal from the candle feed's current window."""
        if self.candle_feed is None:
            raise RuntimeError("No candle feed configured")
        candles = self.candle_feed.get_snapshot(symbol)
        return await self.generate_signal(symbol, candles, news_bias, user_id)

    async def generate_for_symbols(
        self,
        symbols: Sequence[str],
        user_id: str | None = None,
        pause: float = 0.0,
    ) -> list[Signal]:
        """
        Generate one signal per symbol from the candle feed.

        Symbols without candles are skipped; a failure for one symbol is
        logged and does not stop the others.

        Args:
            symbols: Instruments to analyze, in order
            user_id: Owner of the generated signals
            pause: Seconds to wait between symbols
        """
        if self.candle_feed is None:
            raise RuntimeError("No candle feed configured")

        generated: list[Signal] = []
        for i, symbol in enumerate(symbols):
            if i and pause > 0:
                await asyncio.sleep(pause)
            if not self.candle_feed.get_snapshot(symbol):
                logger.debug(f"No candles for {symbol}, skipping generation")
                continue
            try:
                generated.append(await self.generate_from_feed(symbol, user_id=user_id))
            except Exception as e:
                logger.error(f"Auto-generation failed for {symbol}: {e}")
        return generated

    async def list_signals(self, user_id: str | None = None) -> list[Signal]:
        """Get stored signals newest first, with live tracker state where newer."""
        signals = await self.repository.list_for_user(user_id)
        return [self.tracker.get_signal(s.id) or s for s in signals]

    async def track_signal(self, signal_id: str) -> Signal:
        """
        Mark a stored signal as tracked and start monitoring it.

        Raises:
            SignalNotFoundError: Unknown signal id
            SignalNotTrackableError: NEUTRAL signal (no trade levels)
        """
        signal = await self.repository.get_by_id(signal_id)
        if signal is None:
            raise SignalNotFoundError(signal_id)
        if signal.direction == Direction.NEUTRAL:
            raise SignalNotTrackableError(signal_id)

        if not signal.tracked:
            await self.repository.update(signal_id, {"tracked": True})
            signal = signal.model_copy(update={"tracked": True})

        await self.tracker.add_signal(signal)
        return signal

    async def delete_signal(self, signal_id: str) -> None:
        """
        Stop tracking and delete a signal.

        Raises:
            SignalNotFoundError: Unknown signal id
        """
        await self.tracker.remove_signal(signal_id)
        deleted = await self.repository.delete(signal_id)
        if not deleted:
            raise SignalNotFoundError(signal_id)
        logger.info(f"Deleted signal {signal_id}")
