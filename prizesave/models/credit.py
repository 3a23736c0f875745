"""Per-participant credit and timelock records owned by the strategy."""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .types import ID_TYPE, Uint256


class CreditAccount(Base):
    """Credit accrued by a holder of one controlled token.

    ``balance`` is the credit as of ``timestamp``; anything accrued since is
    computed on read and written back only by balance-affecting hooks.
    """

    __tablename__ = "credit_accounts"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"), nullable=False
    )
    holder: Mapped[str] = mapped_column(String(100), nullable=False)
    balance: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "strategy_id", "token_id", "holder", name="uq_credit_account_holder"
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<CreditAccount(holder='{self.holder}', token_id={self.token_id}, "
            f"balance={self.balance}, timestamp={self.timestamp})>"
        )


class TimelockEntry(Base):
    """Funds withdrawn with a timelock, claimable once ``unlock_timestamp`` passes."""

    __tablename__ = "timelock_entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    holder: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    unlock_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("strategy_id", "holder", name="uq_timelock_entry_holder"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<TimelockEntry(holder='{self.holder}', amount={self.amount}, "
            f"unlock_timestamp={self.unlock_timestamp})>"
        )


__all__ = ["CreditAccount", "TimelockEntry"]
