"""Randomness sources for the prize strategy."""

from .base import LocalRNG, RNGRegistry, RNGService

__all__ = ["LocalRNG", "RNGRegistry", "RNGService"]
