import unittest

from prizesave.fixed_point import (
    SCALE,
    divide_by_mantissa,
    multiply_by_mantissa,
    require_fraction,
    to_mantissa,
)
from prizesave.prize_strategy.credit import (
    accrue_credit,
    credit_limit,
    estimate_credit_accrual_time,
    instant_withdrawal_fee,
)

ONE = 10**18
EXIT_FEE = to_mantissa("0.1")
# One tenth of the balance per prize period of 1000 seconds.
CREDIT_RATE = to_mantissa("0.1") // 1000


class TestFixedPoint(unittest.TestCase):
    def test_to_mantissa(self):
        self.assertEqual(to_mantissa("0.1"), 10**17)
        self.assertEqual(to_mantissa(0.1), 10**17)
        self.assertEqual(to_mantissa(1), SCALE)

    def test_arithmetic_rounds_down(self):
        self.assertEqual(multiply_by_mantissa(50 * ONE, EXIT_FEE), 5 * ONE)
        self.assertEqual(multiply_by_mantissa(9, EXIT_FEE), 0)
        self.assertEqual(divide_by_mantissa(5 * ONE, EXIT_FEE), 50 * ONE)
        with self.assertRaises(ZeroDivisionError):
            divide_by_mantissa(1, 0)

    def test_require_fraction(self):
        require_fraction("fee", SCALE)
        with self.assertRaises(ValueError):
            require_fraction("fee", SCALE + 1)
        with self.assertRaises(ValueError):
            require_fraction("fee", -1)


class TestCredit(unittest.TestCase):
    def test_accrues_linearly_until_the_limit(self):
        self.assertEqual(
            accrue_credit(0, 0, 100 * ONE, 500, CREDIT_RATE, EXIT_FEE), 5 * ONE
        )
        self.assertEqual(
            accrue_credit(0, 0, 100 * ONE, 1000, CREDIT_RATE, EXIT_FEE), 10 * ONE
        )
        self.assertEqual(
            accrue_credit(0, 0, 100 * ONE, 5000, CREDIT_RATE, EXIT_FEE), 10 * ONE
        )
        self.assertEqual(credit_limit(100 * ONE, EXIT_FEE), 10 * ONE)

    def test_limit_follows_current_balance(self):
        # Credit earned on a larger balance is capped once the balance shrinks.
        self.assertEqual(
            accrue_credit(10 * ONE, 100, 20 * ONE, 100, CREDIT_RATE, EXIT_FEE),
            2 * ONE,
        )

    def test_clock_going_backwards_accrues_nothing(self):
        self.assertEqual(
            accrue_credit(ONE, 500, 100 * ONE, 400, CREDIT_RATE, EXIT_FEE), ONE
        )

    def test_instant_withdrawal_fee(self):
        self.assertEqual(instant_withdrawal_fee(50 * ONE, EXIT_FEE, 0), (5 * ONE, 0))
        self.assertEqual(
            instant_withdrawal_fee(50 * ONE, EXIT_FEE, 2 * ONE), (3 * ONE, 2 * ONE)
        )
        self.assertEqual(
            instant_withdrawal_fee(50 * ONE, EXIT_FEE, 9 * ONE), (0, 5 * ONE)
        )

    def test_estimate_credit_accrual_time(self):
        self.assertEqual(
            estimate_credit_accrual_time(100 * ONE, 10 * ONE, CREDIT_RATE), 1000
        )
        self.assertEqual(
            estimate_credit_accrual_time(100 * ONE, 30 * ONE, CREDIT_RATE), 3000
        )
        self.assertEqual(estimate_credit_accrual_time(0, 10 * ONE, CREDIT_RATE), 0)
        self.assertEqual(estimate_credit_accrual_time(100 * ONE, 10 * ONE, 0), 0)


if __name__ == "__main__":
    unittest.main()
