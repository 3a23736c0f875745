"""18-decimal fixed-point helpers.

Fractions such as the exit fee or the credit rate are stored as integer
"mantissas" where ``SCALE`` represents ``1.0``.  All arithmetic stays in
integers so results are exact and reproducible.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Union

SCALE = 10**18


def to_mantissa(value: Union[int, float, str, Decimal]) -> int:
    """Convert a human fraction (``"0.1"``, ``0.1``) to a mantissa.

    Floats are routed through ``str`` so ``0.1`` becomes exactly ``10**17``.
    """

    if isinstance(value, float):
        value = str(value)
    return int(Decimal(value) * SCALE)


def multiply_by_mantissa(amount: int, mantissa: int) -> int:
    """Return ``amount * mantissa / SCALE`` rounded down."""

    return (amount * mantissa) // SCALE


def require_fraction(name: str, mantissa: int) -> None:
    """Raise ``ValueError`` unless ``mantissa`` lies within ``[0, 1.0]``."""

    if mantissa < 0 or mantissa > SCALE:
        raise ValueError(f"{name} must be between 0 and 1.0")


def divide_by_mantissa(amount: int, mantissa: int) -> int:
    """Return ``amount / (mantissa / SCALE)`` rounded down."""

    if mantissa == 0:
        raise ZeroDivisionError("mantissa must be non-zero")
    return (amount * SCALE) // mantissa


__all__ = [
    "SCALE",
    "to_mantissa",
    "multiply_by_mantissa",
    "divide_by_mantissa",
    "require_fraction",
]
