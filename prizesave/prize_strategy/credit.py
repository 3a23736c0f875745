"""Credit and early-exit fee arithmetic.

Participants accrue credit continuously while they hold tokens.  Credit is
only ever spent to offset the early exit fee on withdrawal, so it is capped at
the largest fee the holder's balance could incur.
"""

from __future__ import annotations

from ..fixed_point import divide_by_mantissa, multiply_by_mantissa


def credit_limit(balance: int, exit_fee_mantissa: int) -> int:
    """Most credit ``balance`` can hold: the fee it would pay to exit in full."""
    return multiply_by_mantissa(balance, exit_fee_mantissa)


def accrue_credit(
    credit: int,
    last_timestamp: int,
    balance: int,
    now: int,
    credit_rate_mantissa: int,
    exit_fee_mantissa: int,
) -> int:
    """Return ``credit`` after ``balance`` has been held from ``last_timestamp`` to ``now``.

    Parameters
    ----------
    credit : int
        Credit as of ``last_timestamp``.
    last_timestamp : int
        UNIX time the credit was last brought up to date.
    balance : int
        Token balance held over the whole interval.
    now : int
        Time to accrue up to.
    credit_rate_mantissa : int
        Credit earned per token per second, as a fixed-point fraction.
    exit_fee_mantissa : int
        Exit fee fraction; sets the credit cap.

    Returns
    -------
    int
        ``credit + balance * rate * elapsed``, capped at
        :func:`credit_limit`.
    """

    elapsed = max(0, now - last_timestamp)
    accrued = multiply_by_mantissa(balance * elapsed, credit_rate_mantissa)
    return min(credit + accrued, credit_limit(balance, exit_fee_mantissa))


def exit_fee_without_credit(amount: int, exit_fee_mantissa: int) -> int:
    return multiply_by_mantissa(amount, exit_fee_mantissa)


def instant_withdrawal_fee(
    amount: int, exit_fee_mantissa: int, available_credit: int
) -> tuple[int, int]:
    """Split the exit fee on ``amount`` into ``(remaining_fee, burned_credit)``."""

    fee = exit_fee_without_credit(amount, exit_fee_mantissa)
    burned = min(available_credit, fee)
    return fee - burned, burned


def estimate_credit_accrual_time(
    balance: int, interest: int, credit_rate_mantissa: int
) -> int:
    """Seconds ``balance`` needs to accrue ``interest`` worth of credit.

    Returns ``0`` when nothing would ever accrue (zero balance or rate).
    """

    if balance <= 0 or credit_rate_mantissa <= 0:
        return 0
    return divide_by_mantissa(interest, balance * credit_rate_mantissa)


__all__ = [
    "accrue_credit",
    "credit_limit",
    "estimate_credit_accrual_time",
    "exit_fee_without_credit",
    "instant_withdrawal_fee",
]
