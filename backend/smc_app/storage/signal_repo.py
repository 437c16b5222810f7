"""Signal data repository (SQLAlchemy, async)."""

from typing import Any
from uuid import uuid4

from sqlalchemy import delete, select, update

from smc_core.models import CloseReason, Direction, Signal
from smc_app.storage.database import Database, SignalTable

_COLUMNS = [c.name for c in SignalTable.__table__.columns]


def _signal_to_values(signal: Signal) -> dict[str, Any]:
    values = signal.model_dump()
    values["direction"] = signal.direction.value
    values["closed_reason"] = signal.closed_reason.value if signal.closed_reason else None
    return {k: v for k, v in values.items() if k in _COLUMNS}


def _fields_to_values(fields: dict[str, Any]) -> dict[str, Any]:
    values = {}
    for key, value in fields.items():
        if key not in _COLUMNS or key == "id":
            continue
        if isinstance(value, (Direction, CloseReason)):
            value = value.value
        values[key] = value
    return values


class SignalRepository:
    """Repository for signal data operations."""

    def __init__(self, database: Database):
        self._db = database

    async def create(self, signal: Signal) -> str:
        """Save a new signal record and return its ID."""
        signal_id = signal.id or uuid4().hex
        values = _signal_to_values(signal)
        values["id"] = signal_id

        async with self._db.session() as session:
            session.add(SignalTable(**values))
        return signal_id

    async def update(self, signal_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to a signal."""
        values = _fields_to_values(fields)
        if not values:
            return

        async with self._db.session() as session:
            stmt = update(SignalTable).where(SignalTable.id == signal_id).values(**values)
            await session.execute(stmt)

    async def get_by_id(self, signal_id: str) -> Signal | None:
        """Get a signal by ID."""
        async with self._db.session() as session:
            stmt = select(SignalTable).where(SignalTable.id == signal_id)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

            if row is None:
                return None
            return self._row_to_signal(row)

    async def query_open_tracked(self, user_id: str | None = None) -> list[Signal]:
        """Get tracked signals that are not closed yet."""
        async with self._db.session() as session:
            stmt = select(SignalTable).where(
                SignalTable.tracked.is_(True),
                SignalTable.closed.is_(False),
            )
            if user_id:
                stmt = stmt.where(SignalTable.user_id == user_id)
            stmt = stmt.order_by(SignalTable.created_at.asc())

            result = await session.execute(stmt)
            return [self._row_to_signal(row) for row in result.scalars().all()]

    async def list_for_user(self, user_id: str | None = None) -> list[Signal]:
        """Get signals, newest first."""
        async with self._db.session() as session:
            stmt = select(SignalTable)
            if user_id:
                stmt = stmt.where(SignalTable.user_id == user_id)
            stmt = stmt.order_by(SignalTable.created_at.desc())

            result = await session.execute(stmt)
            return [self._row_to_signal(row) for row in result.scalars().all()]

    async def delete(self, signal_id: str) -> bool:
        """Delete a signal by ID."""
        async with self._db.session() as session:
            stmt = delete(SignalTable).where(SignalTable.id == signal_id)
            result = await session.execute(stmt)
            return result.rowcount > 0

    @staticmethod
    def _row_to_signal(row: SignalTable) -> Signal:
        """Convert database row to Signal."""
        return Signal(
            id=row.id,
            user_id=row.user_id,
            symbol=row.symbol,
            direction=Direction(row.direction),
            entry=row.entry,
            sl=row.sl,
            tp1=row.tp1,
            tp2=row.tp2,
            tp3=row.tp3,
            confidence=row.confidence,
            reasoning=list(row.reasoning or []),
            created_at=row.created_at,
            tracked=row.tracked,
            tp1_hit=row.tp1_hit,
            tp2_hit=row.tp2_hit,
            tp3_hit=row.tp3_hit,
            tp1_hit_at=row.tp1_hit_at,
            tp2_hit_at=row.tp2_hit_at,
            tp3_hit_at=row.tp3_hit_at,
            breakeven_set=row.breakeven_set,
            closed=row.closed,
            closed_at=row.closed_at,
            closed_price=row.closed_price,
            closed_reason=CloseReason(row.closed_reason) if row.closed_reason else None,
        )
