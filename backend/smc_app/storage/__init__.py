"""Storage layer: database access and signal repositories."""

from smc_app.storage.database import Base, Database, SignalTable, init_database
from smc_app.storage.memory_repo import InMemorySignalRepository
from smc_app.storage.signal_repo import SignalRepository

__all__ = [
    "Base",
    "Database",
    "SignalTable",
    "init_database",
    "InMemorySignalRepository",
    "SignalRepository",
]
