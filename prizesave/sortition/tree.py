"""Array-backed sum tree for balance-weighted random selection."""

from __future__ import annotations

from typing import Optional

from .store import MemoryNodeStore, NodeStore

DEFAULT_DEPTH = 32


class SortitionSumTree:
    """Complete binary tree of weights addressed by index.

    The root lives at index ``1``; the children of ``i`` are ``2i`` and
    ``2i + 1``; leaf slot ``s`` is index ``2**depth + s``.  Every internal node
    holds the sum of its subtree, so both :meth:`set` and :meth:`draw` touch
    exactly ``depth + 1`` nodes.

    Nodes live in a :class:`NodeStore`, which only needs to remember non-zero
    values.  A participant whose weight drops to zero gives up its leaf, and
    the lowest vacant leaf is reused first.

    Parameters
    ----------
    store : Optional[NodeStore], default: None
        Where nodes and leaf assignments are kept.  An in-memory store is
        created when omitted.
    depth : int, default: 32
        Tree depth; the tree holds at most ``2**depth`` participants.
    """

    def __init__(self, store: Optional[NodeStore] = None, depth: int = DEFAULT_DEPTH) -> None:
        if depth < 1:
            raise ValueError("depth must be at least 1")
        self._store = store if store is not None else MemoryNodeStore()
        self._depth = depth
        self._capacity = 1 << depth

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        return self._capacity

    def total(self) -> int:
        """Sum of all weights."""
        return self._store.get(1)

    def weight_of(self, identity: str) -> int:
        """Current weight of ``identity``; zero when it holds no leaf."""
        slot = self._store.slot_of(identity)
        if slot is None:
            return 0
        return self._store.get(self._capacity + slot)

    def set(self, identity: str, weight: int) -> None:
        """Set the weight of ``identity`` and update every ancestor sum.

        Raises
        ------
        ValueError
            If ``weight`` is negative.
        OverflowError
            If a new participant arrives while every leaf is taken.
        """

        if weight < 0:
            raise ValueError("weight must be non-negative")

        slot = self._store.slot_of(identity)
        if slot is None:
            if weight == 0:
                return
            slot = self._store.assign(identity, self._capacity)

        position = self._capacity + slot
        delta = weight - self._store.get(position)
        if delta != 0:
            self._store.set(position, weight)
            position >>= 1
            while position >= 1:
                self._store.set(position, self._store.get(position) + delta)
                position >>= 1

        if weight == 0:
            self._store.release(identity)

    def draw(self, value: int) -> Optional[str]:
        """Return the participant whose cumulative weight range holds ``value``.

        ``value`` must satisfy ``0 <= value < total()``.  Returns ``None`` for
        an empty tree.
        """

        total = self.total()
        if total == 0:
            return None
        if value < 0 or value >= total:
            raise ValueError(f"draw value {value} outside [0, {total})")

        position = 1
        while position < self._capacity:
            left = position << 1
            left_sum = self._store.get(left)
            if value < left_sum:
                position = left
            else:
                value -= left_sum
                position = left + 1
        return self._store.identity_at(position - self._capacity)


__all__ = ["DEFAULT_DEPTH", "SortitionSumTree"]
