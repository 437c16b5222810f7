"""REST API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from smc_core.models import Candle, NewsBias, Signal, Tick, TrackerStats
from smc_app.config import Settings
from smc_app.services import (
    SignalNotFoundError,
    SignalNotTrackableError,
    SignalService,
    SignalTracker,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    """Signal generation request.

    Without candles, the server-side candle window for the symbol is used.
    """

    symbol: str
    candles: Optional[list[Candle]] = None
    news_bias: Optional[NewsBias] = None
    user_id: Optional[str] = None


class TickResponse(BaseModel):
    """Tick accepted into the feed; lifecycle events follow on /ws."""

    symbol: str
    delivered: int


class CandleIngestResponse(BaseModel):
    symbol: str
    count: int


class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    symbols: list[str]
    granularity: str
    active_signals: int
    subscribed_symbols: list[str]


def get_service(request: Request) -> SignalService:
    return request.app.state.service


def get_tracker(request: Request) -> SignalTracker:
    return request.app.state.tracker


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/status", response_model=SystemStatus)
async def get_status(request: Request):
    """Get system status."""
    settings = get_app_settings(request)
    tracker = get_tracker(request)

    return SystemStatus(
        status="running",
        version="0.1.0",
        symbols=settings.symbols,
        granularity=settings.candle_granularity,
        active_signals=tracker.active_count,
        subscribed_symbols=sorted(tracker.subscribed_symbols),
    )


@router.post("/signals/generate", response_model=Signal)
async def generate_signal(request: Request, body: GenerateRequest):
    """Score a candle window and store the resulting signal (untracked)."""
    service = get_service(request)
    user_id = body.user_id or get_app_settings(request).default_user_id

    try:
        if body.candles is None:
            return await service.generate_from_feed(body.symbol, body.news_bias, user_id)
        return await service.generate_signal(
            body.symbol, body.candles, body.news_bias, user_id
        )
    except Exception as e:
        logger.error(f"Signal generation failed for {body.symbol}: {e}")
        raise HTTPException(status_code=502, detail="Failed to store signal")


@router.get("/signals", response_model=list[Signal])
async def get_signals(
    request: Request,
    user_id: Optional[str] = Query(None, description="Filter by owner"),
    symbol: Optional[str] = Query(None, description="Filter by symbol"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum signals to return"),
):
    """Get signals, newest first."""
    service = get_service(request)
    signals = await service.list_signals(user_id or get_app_settings(request).default_user_id)

    if symbol:
        signals = [s for s in signals if s.symbol == symbol]
    return signals[:limit]


@router.post("/signals/{signal_id}/track", response_model=Signal)
async def track_signal(request: Request, signal_id: str):
    """Start lifecycle tracking for a stored signal."""
    try:
        return await get_service(request).track_signal(signal_id)
    except SignalNotFoundError:
        raise HTTPException(status_code=404, detail=f"Signal {signal_id} not found")
    except SignalNotTrackableError:
        raise HTTPException(
            status_code=409, detail=f"Signal {signal_id} is neutral and cannot be tracked"
        )


@router.delete("/signals/{signal_id}")
async def delete_signal(request: Request, signal_id: str):
    """Stop tracking and delete a signal."""
    try:
        await get_service(request).delete_signal(signal_id)
    except SignalNotFoundError:
        raise HTTPException(status_code=404, detail=f"Signal {signal_id} not found")
    return {"deleted": signal_id}


@router.get("/tracker/stats", response_model=TrackerStats)
async def get_tracker_stats(request: Request):
    """Win/loss summary of tracked signals."""
    return get_tracker(request).stats()


@router.post("/ticks", response_model=TickResponse)
async def post_tick(request: Request, tick: Tick):
    """Publish a price tick to the tracker's tick feed."""
    feed = request.app.state.tick_feed
    if not hasattr(feed, "publish"):
        raise HTTPException(status_code=409, detail="Tick feed does not accept pushed ticks")
    delivered = await feed.publish(tick)
    return TickResponse(symbol=tick.symbol, delivered=delivered)


@router.post("/candles/{symbol}", response_model=CandleIngestResponse)
async def post_candles(request: Request, symbol: str, candles: list[Candle]):
    """Append candles (oldest first) to the server-side window for a symbol."""
    feed = request.app.state.candle_feed
    for candle in candles:
        await feed.add(symbol, candle)
    return CandleIngestResponse(symbol=symbol, count=len(feed.get_snapshot(symbol)))
