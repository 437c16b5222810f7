"""Application services."""

from smc_app.services.feeds import InProcessCandleFeed, InProcessTickFeed
from smc_app.services.signal_service import (
    SignalNotFoundError,
    SignalNotTrackableError,
    SignalService,
)
from smc_app.services.signal_tracker import SignalTracker

__all__ = [
    "InProcessCandleFeed",
    "InProcessTickFeed",
    "SignalNotFoundError",
    "SignalNotTrackableError",
    "SignalService",
    "SignalTracker",
]
