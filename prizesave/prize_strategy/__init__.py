"""Periodic prize draw over a prize pool, with credit-based exit fees."""

from .engine import PrizeStrategy
from .period import calculate_next_prize_period_start_time

__all__ = ["PrizeStrategy", "calculate_next_prize_period_start_time"]
