"""Node stores for :class:`~prizesave.sortition.tree.SortitionSumTree`."""

from __future__ import annotations

import heapq
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.sortition import SortitionLeaf, SortitionNode


class NodeStore:
    """Storage interface used by the sum tree.

    Node positions are tree indices; slots are 0-based leaf numbers.
    """

    def get(self, position: int) -> int:
        raise NotImplementedError

    def set(self, position: int, value: int) -> None:
        raise NotImplementedError

    def slot_of(self, identity: str) -> Optional[int]:
        raise NotImplementedError

    def identity_at(self, slot: int) -> Optional[str]:
        raise NotImplementedError

    def assign(self, identity: str, limit: int) -> int:
        """Bind ``identity`` to the lowest vacant slot below ``limit``."""
        raise NotImplementedError

    def release(self, identity: str) -> None:
        raise NotImplementedError


class MemoryNodeStore(NodeStore):
    """Sparse in-process store. Zero-valued nodes are not kept."""

    def __init__(self) -> None:
        self._nodes: dict[int, int] = {}
        self._slots: dict[str, int] = {}
        self._owners: dict[int, str] = {}
        self._vacant: list[int] = []
        self._next_slot = 0

    def get(self, position: int) -> int:
        return self._nodes.get(position, 0)

    def set(self, position: int, value: int) -> None:
        if value:
            self._nodes[position] = value
        else:
            self._nodes.pop(position, None)

    def slot_of(self, identity: str) -> Optional[int]:
        return self._slots.get(identity)

    def identity_at(self, slot: int) -> Optional[str]:
        return self._owners.get(slot)

    def assign(self, identity: str, limit: int) -> int:
        if self._vacant:
            slot = heapq.heappop(self._vacant)
        elif self._next_slot < limit:
            slot = self._next_slot
            self._next_slot += 1
        else:
            raise OverflowError("sortition tree is full")
        self._slots[identity] = slot
        self._owners[slot] = identity
        return slot

    def release(self, identity: str) -> None:
        slot = self._slots.pop(identity, None)
        if slot is None:
            return
        del self._owners[slot]
        heapq.heappush(self._vacant, slot)


class SessionNodeStore(NodeStore):
    """Store persisting nodes and leaf assignments of one strategy.

    Rows are read and written through ``session`` as the tree walks, so a
    tree update costs ``O(depth)`` queries and nothing is cached between calls.
    """

    def __init__(self, session: Session, strategy_id: int) -> None:
        self._session = session
        self._strategy_id = strategy_id

    def _node(self, position: int) -> Optional[SortitionNode]:
        return self._session.scalar(
            select(SortitionNode).where(
                SortitionNode.strategy_id == self._strategy_id,
                SortitionNode.position == position,
            )
        )

    def _leaf_for(self, identity: str) -> Optional[SortitionLeaf]:
        return self._session.scalar(
            select(SortitionLeaf).where(
                SortitionLeaf.strategy_id == self._strategy_id,
                SortitionLeaf.holder == identity,
            )
        )

    def get(self, position: int) -> int:
        node = self._node(position)
        return 0 if node is None else node.value

    def set(self, position: int, value: int) -> None:
        node = self._node(position)
        if node is None:
            if value:
                self._session.add(
                    SortitionNode(
                        strategy_id=self._strategy_id, position=position, value=value
                    )
                )
        elif value:
            node.value = value
        else:
            self._session.delete(node)
        self._session.flush()

    def slot_of(self, identity: str) -> Optional[int]:
        leaf = self._leaf_for(identity)
        return None if leaf is None else leaf.position

    def identity_at(self, slot: int) -> Optional[str]:
        return self._session.scalar(
            select(SortitionLeaf.holder).where(
                SortitionLeaf.strategy_id == self._strategy_id,
                SortitionLeaf.position == slot,
            )
        )

    def assign(self, identity: str, limit: int) -> int:
        vacant = self._session.scalar(
            select(SortitionLeaf)
            .where(
                SortitionLeaf.strategy_id == self._strategy_id,
                SortitionLeaf.holder.is_(None),
            )
            .order_by(SortitionLeaf.position.asc())
            .limit(1)
        )
        if vacant is not None:
            vacant.holder = identity
            self._session.flush()
            return vacant.position

        used = self._session.scalar(
            select(func.count(SortitionLeaf.id)).where(
                SortitionLeaf.strategy_id == self._strategy_id
            )
        )
        if used >= limit:
            raise OverflowError("sortition tree is full")
        self._session.add(
            SortitionLeaf(strategy_id=self._strategy_id, position=used, holder=identity)
        )
        self._session.flush()
        return used

    def release(self, identity: str) -> None:
        leaf = self._leaf_for(identity)
        if leaf is not None:
            leaf.holder = None
            self._session.flush()


__all__ = ["NodeStore", "MemoryNodeStore", "SessionNodeStore"]
