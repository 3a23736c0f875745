"""Token ledger tables: fungible balances and non-fungible custody."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .types import ID_TYPE, Uint256

TOKEN_KINDS = ("controlled", "erc20", "erc721")


class Token(Base):
    """A token known to the system.

    ``controlled`` tokens are minted and burned only by the pool named in
    ``controller``; the pool's ticket and sponsorship tokens are of this kind.
    ``erc20`` tokens are plain fungible assets (the underlying asset, external
    awards).  ``erc721`` tokens use :class:`NonFungibleHolding` instead of
    balances.
    """

    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    symbol: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    controller: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    """Address of the pool allowed to mint and burn a controlled token."""

    total_supply: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    balances: Mapped[list["TokenBalance"]] = relationship(
        back_populates="token", cascade="all, delete-orphan"
    )
    holdings: Mapped[list["NonFungibleHolding"]] = relationship(
        back_populates="token", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "kind IN ('controlled','erc20','erc721')", name="token_kind_enum"
        ),
    )

    def __init__(
        self,
        *,
        address: str,
        kind: str,
        symbol: Optional[str] = None,
        controller: Optional[str] = None,
    ) -> None:
        if kind not in TOKEN_KINDS:
            raise ValueError(f"Unknown token kind '{kind}'")
        if kind == "controlled" and not controller:
            raise ValueError("A controlled token needs a controller address")
        self.address = address
        self.kind = kind
        self.symbol = symbol
        self.controller = controller
        self.total_supply = 0

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Token(id={self.id}, address='{self.address}', kind='{self.kind}')>"

    @property
    def is_fungible(self) -> bool:
        return self.kind != "erc721"

    @classmethod
    def get_by_address(cls, session: Session, address: str) -> Optional["Token"]:
        """Return the token registered under ``address``."""

        return session.scalar(select(cls).where(cls.address == address))


class TokenBalance(Base):
    """Balance of one holder in one fungible token."""

    __tablename__ = "token_balances"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"), nullable=False, index=True
    )
    holder: Mapped[str] = mapped_column(String(100), nullable=False)
    balance: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    token: Mapped["Token"] = relationship(back_populates="balances")

    __table_args__ = (
        UniqueConstraint("token_id", "holder", name="uq_token_balance_holder"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<TokenBalance(token_id={self.token_id}, holder='{self.holder}', "
            f"balance={self.balance})>"
        )


class NonFungibleHolding(Base):
    """Current owner of a single non-fungible token id."""

    __tablename__ = "nonfungible_holdings"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    token_id: Mapped[int] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_number: Mapped[int] = mapped_column(Uint256, nullable=False)
    owner: Mapped[str] = mapped_column(String(100), nullable=False)

    token: Mapped["Token"] = relationship(back_populates="holdings")

    __table_args__ = (
        UniqueConstraint("token_id", "token_number", name="uq_nonfungible_token_number"),
    )


__all__ = ["TOKEN_KINDS", "Token", "TokenBalance", "NonFungibleHolding"]
