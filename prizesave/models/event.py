"""Append-only log of pool and strategy events."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..db.utils import dt_iso
from .base import Base
from .types import ID_TYPE

logger = logging.getLogger(__name__)


class PoolEvent(Base):
    """Payload contract of an emitted event.

    Payload values are JSON encoded.  Integers are written as decimal strings
    so token amounts are never rounded by a JSON reader.
    """

    __tablename__ = "pool_events"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    pool_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("prize_pools.id", ondelete="CASCADE"), nullable=True, index=True
    )
    strategy_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    payload_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<PoolEvent(id={self.id}, name='{self.name}')>"

    @property
    def payload(self) -> dict[str, Any]:
        """Decoded payload. Integers come back as strings."""
        if not self.payload_json:
            return {}
        return json.loads(self.payload_json)

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready view of the event, timestamps in UTC ISO 8601."""
        return {
            "id": self.id,
            "name": self.name,
            "pool_id": self.pool_id,
            "strategy_id": self.strategy_id,
            "payload": self.payload,
            "occurred_at": dt_iso(self.occurred_at),
        }

    @classmethod
    def record(
        cls,
        session: Session,
        name: str,
        payload: Optional[dict[str, Any]] = None,
        *,
        pool_id: Optional[int] = None,
        strategy_id: Optional[int] = None,
    ) -> "PoolEvent":
        """Persist an event row and log it at INFO level."""

        encoded = {key: _jsonable(value) for key, value in (payload or {}).items()}
        event = cls(
            name=name,
            pool_id=pool_id,
            strategy_id=strategy_id,
            payload_json=json.dumps(encoded, sort_keys=True),
        )
        session.add(event)
        logger.info("%s %s", name, encoded)
        return event

    @classmethod
    def named(
        cls,
        session: Session,
        name: str,
        *,
        pool_id: Optional[int] = None,
        strategy_id: Optional[int] = None,
    ) -> list["PoolEvent"]:
        """Return events called ``name`` in insertion order."""

        stmt = select(cls).where(cls.name == name)
        if pool_id is not None:
            stmt = stmt.where(cls.pool_id == pool_id)
        if strategy_id is not None:
            stmt = stmt.where(cls.strategy_id == strategy_id)
        return list(session.scalars(stmt.order_by(cls.id.asc())))


def _jsonable(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


__all__ = ["PoolEvent"]
