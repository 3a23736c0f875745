import unittest

from prizesave.clock import ManualClock
from prizesave.prize_strategy.period import (
    calculate_next_prize_period_start_time,
    prize_period_end_at,
    prize_period_remaining_seconds,
)

START = 1_600_000_000
DAY = 86_400


class TestPrizePeriod(unittest.TestCase):
    def test_end_and_remaining(self):
        self.assertEqual(prize_period_end_at(START, DAY), START + DAY)
        self.assertEqual(prize_period_remaining_seconds(START, DAY, START + 100), DAY - 100)
        self.assertEqual(prize_period_remaining_seconds(START, DAY, START + 2 * DAY), 0)

    def test_next_start_keeps_cadence(self):
        self.assertEqual(
            calculate_next_prize_period_start_time(START, DAY, START + 14 * DAY),
            START + 14 * DAY,
        )
        self.assertEqual(
            calculate_next_prize_period_start_time(START, DAY, START + DAY // 2),
            START,
        )
        self.assertEqual(
            calculate_next_prize_period_start_time(START, DAY, START + DAY + DAY // 2),
            START + DAY,
        )

    def test_next_start_never_precedes_current_start(self):
        self.assertEqual(
            calculate_next_prize_period_start_time(START, DAY, START - 10), START
        )

    def test_zero_period_rejected(self):
        with self.assertRaises(ValueError):
            calculate_next_prize_period_start_time(START, 0, START)


class TestManualClock(unittest.TestCase):
    def test_moves_only_forward_on_advance(self):
        clock = ManualClock(start=START)
        self.assertEqual(clock.advance(10), START + 10)
        clock.set(START)
        self.assertEqual(clock.now(), START)
        with self.assertRaises(ValueError):
            clock.advance(-1)


if __name__ == "__main__":
    unittest.main()
