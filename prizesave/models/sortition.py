"""Rows backing the weighted sortition tree of a strategy."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .types import ID_TYPE, Uint256


class SortitionNode(Base):
    """Subtree sum stored at one tree index. Absent rows read as zero."""

    __tablename__ = "sortition_nodes"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(BigInteger, nullable=False)
    value: Mapped[int] = mapped_column(Uint256, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("strategy_id", "position", name="uq_sortition_node_position"),
    )


class SortitionLeaf(Base):
    """Leaf slot assignment. ``holder`` is NULL while the slot is vacant."""

    __tablename__ = "sortition_leaves"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    strategy_id: Mapped[int] = mapped_column(
        ForeignKey("prize_strategies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(BigInteger, nullable=False)
    holder: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("strategy_id", "position", name="uq_sortition_leaf_position"),
    )


__all__ = ["SortitionNode", "SortitionLeaf"]
