"""Yield vault adapters.

The pool treats the vault as an opaque custodian: it supplies principal, asks
for it back, and reads the total (principal plus interest).  How the vault
earns is not the pool's concern.
"""

from __future__ import annotations

import logging

from ..fixed_point import multiply_by_mantissa

logger = logging.getLogger(__name__)


class YieldVault:
    """Interface of an interest-bearing custodian."""

    def supply(self, amount: int) -> None:
        raise NotImplementedError

    def redeem(self, amount: int) -> int:
        """Withdraw ``amount`` and return what was actually released."""
        raise NotImplementedError

    def balance(self) -> int:
        """Current underlying balance held for the pool, interest included."""
        raise NotImplementedError

    def available_liquidity(self) -> int:
        """Amount that can be redeemed right now."""
        return self.balance()

    def estimate_accrued_interest(self, principal: int, seconds: int) -> int:
        """Interest ``principal`` is expected to earn over ``seconds``."""
        return 0


class SimulatedVault(YieldVault):
    """In-process vault for development and tests.

    Parameters
    ----------
    interest_rate_mantissa : int, default: 0
        Interest per second as a fixed-point fraction, used only for
        :meth:`estimate_accrued_interest`.  Real interest arrives through
        :meth:`accrue`.
    locked : int, default: 0
        Amount held back from redemption, as when a vault has lent funds out.
    """

    def __init__(self, *, interest_rate_mantissa: int = 0, locked: int = 0) -> None:
        self._balance = 0
        self.interest_rate_mantissa = interest_rate_mantissa
        self.locked = locked

    def supply(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._balance += amount
        logger.debug("vault supplied %s, balance %s", amount, self._balance)

    def redeem(self, amount: int) -> int:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if amount > self.available_liquidity():
            raise ValueError("vault cannot release that much")
        self._balance -= amount
        logger.debug("vault redeemed %s, balance %s", amount, self._balance)
        return amount

    def balance(self) -> int:
        return self._balance

    def available_liquidity(self) -> int:
        return max(0, self._balance - self.locked)

    def accrue(self, amount: int) -> None:
        """Credit interest (or any transfer that bypasses ``supply``)."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._balance += amount

    def lose(self, amount: int) -> None:
        """Remove funds without the pool's involvement, as a faulty vault would."""
        self._balance = max(0, self._balance - amount)

    def estimate_accrued_interest(self, principal: int, seconds: int) -> int:
        return multiply_by_mantissa(principal * max(0, seconds), self.interest_rate_mantissa)


__all__ = ["YieldVault", "SimulatedVault"]
