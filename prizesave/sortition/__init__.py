"""Weighted sortition: balance-weighted winner selection in O(log n)."""

from .store import MemoryNodeStore, NodeStore, SessionNodeStore
from .tree import DEFAULT_DEPTH, SortitionSumTree

__all__ = [
    "DEFAULT_DEPTH",
    "MemoryNodeStore",
    "NodeStore",
    "SessionNodeStore",
    "SortitionSumTree",
]
