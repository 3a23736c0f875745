"""Persistent state of the prize strategy: period clock and configuration."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .types import ID_TYPE, Uint256

if TYPE_CHECKING:
    from .pool import PrizePoolRecord
    from .token import Token


class PrizeStrategyRecord(Base):
    """Configuration record and prize-period state of one strategy.

    The strategy is ``Locked`` exactly while :attr:`rng_request_id` is set.
    """

    __tablename__ = "prize_strategies"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    address: Mapped[str] = mapped_column(String(100), nullable=False)
    """Identity the strategy acts under when calling the pool."""

    admin: Mapped[str] = mapped_column(String(100), nullable=False)
    """Only this identity may change configuration."""

    prize_pool_id: Mapped[int] = mapped_column(
        ForeignKey("prize_pools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticket_token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False
    )
    """Weighted participant-balance token."""

    sponsorship_token_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=True
    )
    """Non-weighted token; sponsors add principal without a chance to win."""

    prize_period_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False)
    prize_period_started_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """UNIX time the current period began; moves only on award completion."""

    rng_service_key: Mapped[str] = mapped_column(String(100), nullable=False)
    """Key of the randomness service in the strategy's RNG registry."""

    rng_request_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rng_requested_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    award_snapshot: Mapped[Optional[int]] = mapped_column(Uint256, nullable=True)
    """Prize amount captured when the award started."""

    total_weight_snapshot: Mapped[Optional[int]] = mapped_column(Uint256, nullable=True)
    """Total ticket weight captured when the award started."""

    credit_rate_mantissa: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    exit_fee_mantissa: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    prize_pool: Mapped["PrizePoolRecord"] = relationship("PrizePoolRecord")
    ticket: Mapped["Token"] = relationship("Token", foreign_keys=[ticket_token_id])
    sponsorship: Mapped[Optional["Token"]] = relationship(
        "Token", foreign_keys=[sponsorship_token_id]
    )

    __table_args__ = (UniqueConstraint("address", name="uq_prize_strategy_address"),)

    def __init__(
        self,
        *,
        address: str,
        admin: str,
        prize_pool: "PrizePoolRecord",
        ticket: "Token",
        prize_period_seconds: int,
        prize_period_started_at: int,
        rng_service_key: str,
        sponsorship: Optional["Token"] = None,
        credit_rate_mantissa: int = 0,
        exit_fee_mantissa: int = 0,
    ) -> None:
        self.address = address
        self.admin = admin
        self.prize_pool = prize_pool
        self.ticket = ticket
        if sponsorship is not None:
            self.sponsorship = sponsorship
        self.prize_period_seconds = prize_period_seconds
        self.prize_period_started_at = prize_period_started_at
        self.rng_service_key = rng_service_key
        self.credit_rate_mantissa = credit_rate_mantissa
        self.exit_fee_mantissa = exit_fee_mantissa

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<PrizeStrategyRecord(id={self.id}, address='{self.address}', "
            f"started_at={self.prize_period_started_at}, "
            f"rng_request_id={self.rng_request_id})>"
        )

    @property
    def is_locked(self) -> bool:
        return self.rng_request_id is not None

    @classmethod
    def get_by_address(
        cls, session: Session, address: str
    ) -> Optional["PrizeStrategyRecord"]:
        """Return the strategy registered under ``address``."""

        return session.scalar(select(cls).where(cls.address == address))


__all__ = ["PrizeStrategyRecord"]
