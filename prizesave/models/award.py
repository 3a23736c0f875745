"""External award registry: tokens queued for transfer to the next winner."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .types import ID_TYPE, Uint256

if TYPE_CHECKING:
    from .token import Token


class ExternalErc20Award(Base):
    """A fungible token whose full pool balance goes to the next winner."""

    __tablename__ = "external_erc20_awards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"), nullable=False
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    token: Mapped["Token"] = relationship("Token")

    __table_args__ = (
        UniqueConstraint("strategy_id", "token_id", name="uq_external_erc20_award"),
    )


class ExternalErc721Award(Base):
    """One non-fungible token id held by the pool and queued for the winner."""

    __tablename__ = "external_erc721_awards"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"), nullable=False
    )
    token_number: Mapped[int] = mapped_column(Uint256, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    token: Mapped["Token"] = relationship("Token")

    __table_args__ = (
        UniqueConstraint(
            "strategy_id", "token_id", "token_number", name="uq_external_erc721_award"
        ),
    )


__all__ = ["ExternalErc20Award", "ExternalErc721Award"]
