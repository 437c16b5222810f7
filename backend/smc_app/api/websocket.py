"""WebSocket endpoint pushing signals and lifecycle notifications."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from smc_core.lifecycle import Transition
from smc_core.models import Signal

logger = logging.getLogger(__name__)


def _orjson_dumps(obj: Any) -> str:
    """Serialize object to JSON string using orjson."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WebSocketMessage(BaseModel):
    """WebSocket message format."""

    type: str  # "signal", "notification", "status"
    data: dict[str, Any]
    timestamp: datetime

    def to_json(self) -> str:
        """Serialize to JSON string using orjson."""
        return _orjson_dumps(self.model_dump(mode="json"))


class ConnectionManager:
    """Manage WebSocket connections and broadcasts."""

    def __init__(self):
        self._connections: list[WebSocket] = []
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.append(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self._connections)}")

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a disconnected WebSocket."""
        async with self._lock:
            if websocket in self._connections:
                self._connections.remove(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self._connections)}")

    async def broadcast(self, message: WebSocketMessage) -> None:
        """Broadcast message to all connected clients."""
        if not self._connections:
            return

        message_text = message.to_json()
        disconnected = []

        async with self._lock:
            for websocket in self._connections:
                try:
                    await websocket.send_text(message_text)
                except Exception as e:
                    logger.warning(f"Failed to send message: {e}")
                    disconnected.append(websocket)

            for ws in disconnected:
                self._connections.remove(ws)

    async def send_signal(self, signal: Signal) -> None:
        """Broadcast a newly generated signal."""
        message = WebSocketMessage(
            type="signal",
            data=signal.model_dump(mode="json"),
            timestamp=_utcnow(),
        )
        await self.broadcast(message)

    async def send_notification(self, signal: Signal, transition: Transition) -> None:
        """Broadcast a lifecycle event (TP hit, stop out, closure)."""
        message = WebSocketMessage(
            type="notification",
            data={
                "signal_id": signal.id,
                "symbol": signal.symbol,
                "event": transition.event.value,
                "message": transition.message,
                "closed": signal.closed,
                "signal": signal.model_dump(mode="json"),
            },
            timestamp=_utcnow(),
        )
        await self.broadcast(message)

    @property
    def connection_count(self) -> int:
        """Get number of active connections."""
        return len(self._connections)


def _envelope(msg_type: str, data: dict) -> str:
    return _orjson_dumps({
        "type": msg_type,
        "data": data,
        "timestamp": _utcnow().isoformat(),
    })


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Messages sent to clients:
    - signal: New trading signal
    - notification: Signal lifecycle event (TP1/TP2/TP3 hit, stop loss)

    Message format:
    {
        "type": "notification",
        "data": {...},
        "timestamp": "2024-01-01T00:00:00+00:00"
    }
    """
    manager: ConnectionManager = websocket.app.state.manager
    await manager.connect(websocket)

    try:
        await websocket.send_text(
            _envelope("connected", {"message": "Connected to SMC signal engine"})
        )

        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=60.0)

                try:
                    message = orjson.loads(data)
                    await handle_client_message(websocket, message)
                except orjson.JSONDecodeError:
                    await websocket.send_text(_envelope("error", {"message": "Invalid JSON"}))

            except asyncio.TimeoutError:
                # Keepalive
                await websocket.send_text(_envelope("ping", {}))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(websocket)


async def handle_client_message(websocket: WebSocket, message: dict) -> None:
    """Handle incoming message from client."""
    msg_type = message.get("type", "") if isinstance(message, dict) else ""

    if msg_type == "ping":
        await websocket.send_text(_envelope("pong", {}))
    else:
        await websocket.send_text(
            _envelope("error", {"message": f"Unknown message type: {msg_type}"})
        )
