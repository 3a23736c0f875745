"""Column types shared by the models."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.types import TypeDecorator

# Use BigInteger by default, with a SQLite-safe Integer variant for autoincrement PKs.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Uint256(TypeDecorator):
    """Non-negative integer of arbitrary size stored as decimal text.

    Token amounts in base units routinely exceed 64 bits (``10 * 10**18``), and
    backends disagree on how wide ``NUMERIC`` really is.  Text keeps them exact.
    Values must not be compared or summed in SQL.
    """

    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value: Optional[int], dialect) -> Optional[str]:
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"Uint256 cannot store negative value {value}")
        return str(value)

    def process_result_value(self, value: Optional[str], dialect) -> Optional[int]:
        if value is None:
            return None
        return int(value)


__all__ = ["ID_TYPE", "Uint256"]
