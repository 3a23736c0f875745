"""Exception types raised by the pool and the prize strategy.

Every error aborts the operation that raised it; the surrounding SAVEPOINT is
rolled back so no partial state survives.  Callers are expected to re-check
the relevant predicate (``can_start_award``, ``can_complete_award``, credit or
liquidity) before trying again.
"""

from __future__ import annotations


class PrizePoolError(Exception):
    """Base class for all domain errors."""


class InsufficientLiquidity(PrizePoolError):
    """Redemption exceeds what the vault can currently release."""


class RngInFlight(PrizePoolError):
    """A randomness request is outstanding and the action would disturb it."""


class UnapprovedExternalToken(PrizePoolError):
    """The external award token is rejected by the pool policy."""


class TokenNotHeldByPool(PrizePoolError):
    """A non-fungible award is not custodied by the pool."""


class Unauthorized(PrizePoolError, PermissionError):
    """The caller may not invoke this operation."""


class DrawNotReady(PrizePoolError):
    """``start_award`` was called before the prize period ended or while locked."""


class DrawNotComplete(PrizePoolError):
    """``complete_award`` was called without a completed randomness request."""


class ExitFeeExceeded(PrizePoolError):
    """The early exit fee is larger than the caller or the pool allows."""


class InsufficientBalance(PrizePoolError):
    """A token holder does not have enough balance for a burn or transfer."""


class UnknownToken(PrizePoolError):
    """The token is not registered, or is not usable for this operation."""


__all__ = [
    "PrizePoolError",
    "InsufficientLiquidity",
    "RngInFlight",
    "UnapprovedExternalToken",
    "TokenNotHeldByPool",
    "Unauthorized",
    "DrawNotReady",
    "DrawNotComplete",
    "ExitFeeExceeded",
    "InsufficientBalance",
    "UnknownToken",
]
