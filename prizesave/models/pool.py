"""Persistent state of a custodial prize pool."""

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
    from .token import Token


class PrizePoolRecord(Base):
    """Bookkeeping owned exclusively by the custodial pool."""

    __tablename__ = "prize_pools"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    address: Mapped[str] = mapped_column(String(100), nullable=False)
    """Identity the pool acts under (holder of underlying, caller of hooks)."""

    admin: Mapped[str] = mapped_column(String(100), nullable=False)
    """Only this identity may change pool configuration or take the reserve."""

    underlying_token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False
    )
    """Asset deposited by participants and supplied to the vault."""

    prize_strategy_address: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    """The only identity allowed to call :meth:`PrizePool.award`."""

    accounted_balance: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    """Principal tracked across all controlled tokens plus pending timelocks."""

    reserve_rate_mantissa: Mapped[int] = mapped_column(
        Uint256, nullable=False, default=0
    )
    """Fraction of newly captured interest withheld as reserve."""

    reserve_total: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    """Reserve already withheld and therefore excluded from awards."""

    captured_award_balance: Mapped[int] = mapped_column(
        Uint256, nullable=False, default=0
    )
    """Interest already charged its reserve cut and waiting to be awarded."""

    max_exit_fee_mantissa: Mapped[int] = mapped_column(
        Uint256, nullable=False, default=0
    )
    """Upper bound on the early exit fee as a fraction of the withdrawal."""

    max_timelock_duration: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    """Upper bound on any timelock, in seconds."""

    vault_key: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    """Label of the yield vault this pool was opened against."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    underlying_token: Mapped["Token"] = relationship("Token")

    __table_args__ = (UniqueConstraint("address", name="uq_prize_pool_address"),)

    def __init__(
        self,
        *,
        address: str,
        admin: str,
        underlying_token: Optional["Token"] = None,
        underlying_token_id: Optional[int] = None,
        max_exit_fee_mantissa: int = 0,
        max_timelock_duration: int = 0,
        reserve_rate_mantissa: int = 0,
        vault_key: Optional[str] = None,
    ) -> None:
        self.address = address
        self.admin = admin
        if underlying_token is not None:
            self.underlying_token = underlying_token
        if underlying_token_id is not None:
            self.underlying_token_id = underlying_token_id
        self.max_exit_fee_mantissa = max_exit_fee_mantissa
        self.max_timelock_duration = max_timelock_duration
        self.reserve_rate_mantissa = reserve_rate_mantissa
        self.vault_key = vault_key
        self.accounted_balance = 0
        self.reserve_total = 0
        self.captured_award_balance = 0

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<PrizePoolRecord(id={self.id}, address='{self.address}', "
            f"accounted_balance={self.accounted_balance})>"
        )

    @classmethod
    def get_by_address(
        cls, session: Session, address: str
    ) -> Optional["PrizePoolRecord"]:
        """Return the pool registered under ``address``."""

        return session.scalar(select(cls).where(cls.address == address))


__all__ = ["PrizePoolRecord"]
