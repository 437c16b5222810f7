"""Database connection and table definitions."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    String,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SignalTable(Base):
    """Signal records with take-profit ladder and lifecycle state."""

    __tablename__ = "signals"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=True)
    symbol = Column(String(20), nullable=False)
    direction = Column(String(10), nullable=False)  # BUY | SELL | NEUTRAL
    entry = Column(Float, nullable=False, default=0)
    sl = Column(Float, nullable=False, default=0)
    tp1 = Column(Float, nullable=False, default=0)
    tp2 = Column(Float, nullable=False, default=0)
    tp3 = Column(Float, nullable=False, default=0)
    confidence = Column(Float, nullable=False, default=0)
    reasoning = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False)

    tracked = Column(Boolean, nullable=False, default=False)
    tp1_hit = Column(Boolean, nullable=False, default=False)
    tp2_hit = Column(Boolean, nullable=False, default=False)
    tp3_hit = Column(Boolean, nullable=False, default=False)
    tp1_hit_at = Column(DateTime(timezone=True), nullable=True)
    tp2_hit_at = Column(DateTime(timezone=True), nullable=True)
    tp3_hit_at = Column(DateTime(timezone=True), nullable=True)
    breakeven_set = Column(Boolean, nullable=False, default=False)

    closed = Column(Boolean, nullable=False, default=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_price = Column(Float, nullable=True)
    closed_reason = Column(String(32), nullable=True)

    __table_args__ = (
        Index("idx_signals_user_created", "user_id", "created_at"),
        Index("idx_signals_open_tracked", "tracked", "closed"),
        Index("idx_signals_symbol", "symbol"),
    )


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str, echo: bool = False):
        url = database_url

        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        # - pool_pre_ping: Validate connections before use (detect stale connections)
        # - pool_recycle: Recycle connections after 1 hour
        self.engine = create_async_engine(
            url,
            echo=echo,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_timeout=30,
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()


async def init_database(database_url: str, echo: bool = False) -> Database:
    """Create a database handle and make sure the tables exist."""
    db = Database(database_url, echo=echo)
    await db.create_tables()
    return db
