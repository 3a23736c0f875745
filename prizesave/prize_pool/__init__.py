"""Custodial prize pool and the token ledger it settles against."""

from .pool import PrizePool, TokenListener
from .tokens import TokenLedger

__all__ = ["PrizePool", "TokenLedger", "TokenListener"]
