"""Prize period arithmetic."""

from __future__ import annotations


def prize_period_end_at(started_at: int, period_seconds: int) -> int:
    return started_at + period_seconds


def prize_period_remaining_seconds(started_at: int, period_seconds: int, now: int) -> int:
    return max(0, prize_period_end_at(started_at, period_seconds) - now)


def calculate_next_prize_period_start_time(
    started_at: int, period_seconds: int, current_time: int
) -> int:
    """Return the start of the period containing ``current_time``.

    The boundary only moves in whole periods, so completing an award late
    does not shift the cadence: with period ``D`` starting at ``S``,
    ``S + 1.5D`` maps to ``S + D`` and ``S + D/2`` stays at ``S``.
    """

    if period_seconds <= 0:
        raise ValueError("period_seconds must be positive")
    if current_time <= started_at:
        return started_at
    elapsed_periods = (current_time - started_at) // period_seconds
    return started_at + elapsed_periods * period_seconds


__all__ = [
    "calculate_next_prize_period_start_time",
    "prize_period_end_at",
    "prize_period_remaining_seconds",
]
