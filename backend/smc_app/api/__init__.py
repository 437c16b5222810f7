"""API endpoints."""

from smc_app.api.routes import router
from smc_app.api.websocket import ConnectionManager, websocket_endpoint

__all__ = [
    "router",
    "websocket_endpoint",
    "ConnectionManager",
]
