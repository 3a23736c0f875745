import unittest

from prizesave.clock import ManualClock
from prizesave.db.engine import get_sessionmaker, make_engine
from prizesave.errors import (
    DrawNotComplete,
    DrawNotReady,
    ExitFeeExceeded,
    InsufficientBalance,
    InsufficientLiquidity,
    RngInFlight,
    TokenNotHeldByPool,
    Unauthorized,
    UnapprovedExternalToken,
)
from prizesave.fixed_point import to_mantissa
from prizesave.models import Base, PoolEvent
from prizesave.prize_pool import TokenLedger
from prizesave.prize_strategy import PrizeStrategy
from prizesave.rng import LocalRNG, RNGRegistry
from prizesave.vault import SimulatedVault
from prizesave.workflows import open_prize_pool

ONE = 10**18
START = 1_000_000
PERIOD = 1000
EXIT_FEE = to_mantissa("0.1")
CREDIT_RATE = to_mantissa("0.1") // PERIOD


class PrizeStrategyTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        self.clock = ManualClock(start=START)
        self.vault = SimulatedVault()
        self.rng = LocalRNG(auto_fulfil=False)
        self.registry = RNGRegistry()
        self.registry.register("local", self.rng)

    def tearDown(self):
        self.engine.dispose()

    def _open(self, session, **overrides) -> PrizeStrategy:
        ledger = TokenLedger(session)
        dai = ledger.register("dai", "erc20", symbol="DAI")
        for holder in ("alice", "bob", "carol"):
            ledger.mint(dai, holder, 1_000 * ONE)
        kwargs = dict(
            admin="admin",
            pool_address="pool",
            strategy_address="strategy",
            underlying="dai",
            vault=self.vault,
            rng_registry=self.registry,
            rng_service_key="local",
            prize_period_seconds=PERIOD,
            ticket="ticket",
            sponsorship="sponsorship",
            clock=self.clock,
        )
        kwargs.update(overrides)
        return open_prize_pool(session, **kwargs)

    def _deposit(self, strategy, holder, amount, token="ticket"):
        strategy.pool.deposit_to(holder, holder, amount, token)

    def _balance(self, strategy, token, holder):
        ledger = strategy.pool.ledger
        return ledger.balance_of(ledger.get(token), holder)

    def _run_award(self, strategy, random_number):
        request_id = strategy.start_award("operator")
        self.rng.fulfil(request_id, random_number)
        return strategy.complete_award("operator")


class TestInitialization(PrizeStrategyTestCase):
    def test_initialized_state(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.assertEqual(strategy.prize_period_started_at, START)
            self.assertEqual(strategy.prize_period_end_at(), START + PERIOD)
            self.assertEqual(strategy.prize_period_remaining_seconds(), PERIOD)
            self.assertFalse(strategy.is_rng_requested())
            self.assertEqual(strategy.pool.record.prize_strategy_address, "strategy")
            self.assertIs(strategy.pool.listener, strategy)

            (event,) = PoolEvent.named(session, "PrizeStrategyInitialized")
            self.assertEqual(event.payload["prize_period_seconds"], str(PERIOD))
            self.assertEqual(event.payload["rng_service"], "local")

    def test_rejects_unapproved_initial_awards(self):
        with self.Session.begin() as session:
            with self.assertRaises(UnapprovedExternalToken):
                self._open(session, initial_external_awards=["dai"])

    def test_rejects_zero_period(self):
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                self._open(session, prize_period_seconds=0)

    def test_rejects_unknown_rng_service(self):
        with self.Session.begin() as session:
            with self.assertRaises(KeyError):
                self._open(session, rng_service_key="missing")

    def test_initial_external_awards_are_queued(self):
        with self.Session.begin() as session:
            TokenLedger(session).register("comp", "erc20")
            strategy = self._open(session, initial_external_awards=["comp"])
            self.assertEqual(strategy.external_erc20_awards(), ["comp"])


class TestWeights(PrizeStrategyTestCase):
    def test_ticket_deposits_set_weight(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self._deposit(strategy, "bob", 50 * ONE)
            self._deposit(strategy, "carol", 70 * ONE, token="sponsorship")

            self.assertEqual(strategy.chance_of("alice"), 100 * ONE)
            self.assertEqual(strategy.chance_of("bob"), 50 * ONE)
            self.assertEqual(strategy.chance_of("carol"), 0)
            self.assertEqual(
                strategy.total_weight(), strategy.pool.ledger.total_supply(strategy.ticket)
            )

    def test_transfers_move_weight(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            strategy.pool.transfer("alice", "bob", 40 * ONE, "ticket")

            self.assertEqual(strategy.chance_of("alice"), 60 * ONE)
            self.assertEqual(strategy.chance_of("bob"), 40 * ONE)
            self.assertEqual(strategy.total_weight(), 100 * ONE)

            with self.assertRaises(InsufficientBalance):
                strategy.pool.transfer("bob", "carol", 41 * ONE, "ticket")
            self.assertEqual(strategy.chance_of("bob"), 40 * ONE)

    def test_withdrawal_removes_weight(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            strategy.pool.withdraw_instantly_from("alice", "alice", 100 * ONE, "ticket", 0)
            self.assertEqual(strategy.chance_of("alice"), 0)
            self.assertEqual(strategy.total_weight(), 0)

    def test_draw_maps_random_numbers_to_holders(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.assertIsNone(strategy.draw(12345))
            self._deposit(strategy, "alice", 100)
            self._deposit(strategy, "bob", 300)
            self.assertEqual(strategy.draw(99), "alice")
            self.assertEqual(strategy.draw(100), "bob")
            self.assertEqual(strategy.draw(499), "alice")

    def test_hooks_only_accept_the_pool(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            with self.assertRaises(Unauthorized):
                strategy.after_deposit_to("mallory", "mallory", ONE, "ticket")
            with self.assertRaises(Unauthorized):
                strategy.before_token_transfer("mallory", "alice", "mallory", ONE, "ticket")
            with self.assertRaises(Unauthorized):
                strategy.after_withdraw_with_timelock_from(
                    "mallory", "alice", ONE, "ticket", START, 0
                )


class TestAwardCycle(PrizeStrategyTestCase):
    def test_cannot_start_before_period_end(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.assertFalse(strategy.can_start_award())
            with self.assertRaises(DrawNotReady):
                strategy.start_award("operator")
            self.clock.advance(PERIOD - 1)
            self.assertFalse(strategy.is_prize_period_over())
            self.clock.advance(1)
            self.assertTrue(strategy.can_start_award())

    def test_full_cycle_pays_drawn_winner(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self._deposit(strategy, "bob", 300 * ONE)
            self.vault.accrue(10 * ONE)
            self.clock.advance(PERIOD)

            request_id = strategy.start_award("operator")
            self.assertTrue(strategy.is_rng_requested())
            self.assertFalse(strategy.can_complete_award())
            with self.assertRaises(DrawNotComplete):
                strategy.complete_award("operator")
            with self.assertRaises(DrawNotReady):
                strategy.start_award("operator")

            self.rng.fulfil(request_id, 150 * ONE)
            self.assertTrue(strategy.can_complete_award())
            winner = strategy.complete_award("operator")

            self.assertEqual(winner, "bob")
            self.assertEqual(self._balance(strategy, "ticket", "bob"), 310 * ONE)
            self.assertEqual(strategy.chance_of("bob"), 310 * ONE)
            self.assertEqual(strategy.total_weight(), 410 * ONE)
            self.assertFalse(strategy.is_rng_requested())
            self.assertEqual(strategy.prize_period_started_at, START + PERIOD)
            self.assertEqual(strategy.pool.award_balance(), 0)

            (started,) = PoolEvent.named(session, "AwardStarted")
            self.assertEqual(started.payload["prize"], str(10 * ONE))
            (completed,) = PoolEvent.named(session, "AwardCompleted")
            self.assertEqual(completed.payload["winner"], "bob")
            self.assertEqual(completed.payload["prize"], str(10 * ONE))
            self.assertEqual(completed.payload["random_number"], str(150 * ONE))

    def test_prize_is_the_snapshot_taken_at_start(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self.vault.accrue(10 * ONE)
            self.clock.advance(PERIOD)

            request_id = strategy.start_award("operator")
            self.vault.accrue(5 * ONE)
            self.rng.fulfil(request_id, 0)
            strategy.complete_award("operator")

            self.assertEqual(self._balance(strategy, "ticket", "alice"), 110 * ONE)
            self.assertEqual(strategy.pool.award_balance(), 5 * ONE)

    def test_late_completion_keeps_period_cadence(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.clock.advance(PERIOD + PERIOD // 2)
            self._run_award(strategy, 1)
            self.assertEqual(strategy.prize_period_started_at, START + PERIOD)
            self.assertEqual(
                strategy.calculate_next_prize_period_start_time(START + 14 * PERIOD),
                START + 14 * PERIOD,
            )

    def test_no_participants_means_no_winner(self):
        with self.Session.begin() as session:
            TokenLedger(session).register("comp", "erc20")
            strategy = self._open(session, initial_external_awards=["comp"])
            self._deposit(strategy, "carol", 100 * ONE, token="sponsorship")
            self.vault.accrue(10 * ONE)
            self.clock.advance(PERIOD)

            self.assertIsNone(self._run_award(strategy, 7))
            self.assertEqual(strategy.pool.award_balance(), 10 * ONE)
            self.assertEqual(strategy.external_erc20_awards(), ["comp"])
            self.assertEqual(strategy.prize_period_started_at, START + PERIOD)
            (completed,) = PoolEvent.named(session, "AwardCompleted")
            self.assertIsNone(completed.payload["winner"])
            self.assertEqual(completed.payload["prize"], "0")

    def test_locked_strategy_blocks_balance_changes(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self._deposit(strategy, "alice", 20 * ONE, token="sponsorship")
            self.clock.advance(PERIOD)
            strategy.start_award("operator")

            with self.assertRaises(RngInFlight):
                self._deposit(strategy, "bob", 10 * ONE)
            with self.assertRaises(RngInFlight):
                self._deposit(strategy, "bob", 10 * ONE, token="sponsorship")
            with self.assertRaises(RngInFlight):
                strategy.pool.withdraw_instantly_from(
                    "alice", "alice", ONE, "ticket", 0
                )
            with self.assertRaises(RngInFlight):
                strategy.pool.withdraw_with_timelock_from(
                    "alice", "alice", ONE, "ticket"
                )
            with self.assertRaises(RngInFlight):
                strategy.pool.transfer("alice", "bob", ONE, "ticket")

            strategy.pool.transfer("alice", "bob", 5 * ONE, "sponsorship")
            self.assertEqual(self._balance(strategy, "sponsorship", "bob"), 5 * ONE)

            self.assertEqual(self._balance(strategy, "dai", "bob"), 1_000 * ONE)
            self.assertEqual(self.vault.balance(), 120 * ONE)
            self.assertEqual(strategy.chance_of("alice"), 100 * ONE)

    def test_lock_is_checked_before_fees_and_funds(self):
        with self.Session.begin() as session:
            strategy = self._open(session, exit_fee_mantissa=EXIT_FEE)
            self.clock.advance(PERIOD)
            # Fresh deposit without credit: an instant exit would owe a fee.
            self._deposit(strategy, "bob", 100 * ONE)
            strategy.start_award("operator")

            with self.assertRaises(RngInFlight):
                strategy.pool.withdraw_instantly_from(
                    "bob", "bob", 50 * ONE, "ticket", 0
                )
            with self.assertRaises(RngInFlight):
                strategy.pool.deposit_to("dave", "dave", 10 * ONE, "ticket")

            self.assertEqual(self._balance(strategy, "ticket", "bob"), 100 * ONE)
            self.assertEqual(self._balance(strategy, "dai", "bob"), 900 * ONE)
            self.assertEqual(self.vault.balance(), 100 * ONE)

    def test_configuration_frozen_while_locked(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.registry.register("backup", LocalRNG())
            self.clock.advance(PERIOD)
            strategy.start_award("operator")

            with self.assertRaises(RngInFlight):
                strategy.set_rng_service("admin", "backup")
            with self.assertRaises(RngInFlight):
                strategy.set_exit_fee_mantissa("admin", EXIT_FEE)
            with self.assertRaises(RngInFlight):
                strategy.set_credit_rate_mantissa("admin", CREDIT_RATE)
            self.assertEqual(strategy.record.rng_service_key, "local")

    def test_current_and_estimated_prize(self):
        self.vault.interest_rate_mantissa = 10**14
        with self.Session.begin() as session:
            strategy = self._open(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self.vault.accrue(100 * ONE)
            self.assertEqual(strategy.current_prize(), 100 * ONE)
            self.assertEqual(strategy.estimate_prize(), 110 * ONE)

    def test_current_prize_net_of_reserve(self):
        with self.Session.begin() as session:
            strategy = self._open(session, reserve_rate_mantissa=to_mantissa("0.1"))
            self._deposit(strategy, "alice", 100 * ONE)
            self.vault.accrue(100 * ONE)
            self.assertEqual(strategy.current_prize(), 90 * ONE)


class TestConfiguration(PrizeStrategyTestCase):
    def test_admin_setters_emit_events(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            self.registry.register("backup", LocalRNG())

            strategy.set_credit_rate_mantissa("admin", CREDIT_RATE)
            strategy.set_exit_fee_mantissa("admin", EXIT_FEE)
            strategy.set_rng_service("admin", "backup")

            self.assertEqual(strategy.credit_rate_mantissa, CREDIT_RATE)
            self.assertEqual(strategy.exit_fee_mantissa, EXIT_FEE)
            self.assertIs(strategy.rng_service, self.registry.get("backup"))

            (event,) = PoolEvent.named(session, "RngServiceUpdated")
            self.assertEqual(event.payload, {"old": "local", "new": "backup"})
            (event,) = PoolEvent.named(session, "ExitFeeUpdated")
            self.assertEqual(event.payload, {"old": "0", "new": str(EXIT_FEE)})

    def test_setters_require_admin_and_valid_values(self):
        with self.Session.begin() as session:
            strategy = self._open(session)
            with self.assertRaises(Unauthorized):
                strategy.set_credit_rate_mantissa("alice", CREDIT_RATE)
            with self.assertRaises(Unauthorized):
                strategy.set_rng_service("alice", "local")
            with self.assertRaises(ValueError):
                strategy.set_exit_fee_mantissa("admin", to_mantissa("1.01"))
            with self.assertRaises(KeyError):
                strategy.set_rng_service("admin", "missing")


class TestCreditAndFees(PrizeStrategyTestCase):
    def _open_with_fees(self, session, **overrides):
        return self._open(
            session,
            credit_rate_mantissa=CREDIT_RATE,
            exit_fee_mantissa=EXIT_FEE,
            **overrides,
        )

    def test_instant_fee_without_credit(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 50 * ONE)
            self.assertEqual(
                strategy.calculate_instant_withdrawal_fee("alice", 50 * ONE, "ticket"),
                (5 * ONE, 0),
            )

    def test_credit_offsets_the_fee(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 50 * ONE)
            self.clock.advance(500)
            self.assertEqual(
                strategy.balance_of_credit("alice", "ticket"), 25 * 10**17
            )
            self.assertEqual(
                strategy.calculate_instant_withdrawal_fee("alice", 50 * ONE, "ticket"),
                (25 * 10**17, 25 * 10**17),
            )

            fee = strategy.pool.withdraw_instantly_from(
                "alice", "alice", 50 * ONE, "ticket", 25 * 10**17
            )
            self.assertEqual(fee, 25 * 10**17)
            self.assertEqual(self._balance(strategy, "dai", "alice"), 9975 * 10**17)
            self.assertEqual(strategy.balance_of_credit("alice", "ticket"), 0)
            self.assertEqual(strategy.pool.award_balance(), 25 * 10**17)

    def test_full_credit_means_no_fee(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 50 * ONE)
            self.clock.advance(PERIOD * 3)
            self.assertEqual(strategy.balance_of_credit("alice", "ticket"), 5 * ONE)
            self.assertEqual(
                strategy.calculate_instant_withdrawal_fee("alice", 50 * ONE, "ticket"),
                (0, 5 * ONE),
            )

    def test_fee_above_user_maximum_is_refused(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 50 * ONE)
            with self.assertRaises(ExitFeeExceeded):
                strategy.pool.withdraw_instantly_from(
                    "alice", "alice", 50 * ONE, "ticket", ONE
                )
            self.assertEqual(self._balance(strategy, "ticket", "alice"), 50 * ONE)

    def test_winner_credit_uses_post_award_balance(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 10 * ONE)
            self.vault.accrue(ONE)
            self.clock.advance(PERIOD)
            self.assertEqual(self._run_award(strategy, 3), "alice")

            self.assertEqual(self._balance(strategy, "ticket", "alice"), 11 * ONE)
            self.assertEqual(strategy.balance_of_credit("alice", "ticket"), 11 * 10**17)

    def test_estimate_credit_accrual_time(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self.assertEqual(
                strategy.estimate_credit_accrual_time(100 * ONE, 10 * ONE), 1000
            )
            self.assertEqual(
                strategy.estimate_credit_accrual_time(100 * ONE, 30 * ONE), 3000
            )


class TestTimelocks(PrizeStrategyTestCase):
    def _open_with_fees(self, session, **overrides):
        return self._open(
            session,
            credit_rate_mantissa=CREDIT_RATE,
            exit_fee_mantissa=EXIT_FEE,
            **overrides,
        )

    def test_timelock_lasts_until_period_end_without_credit(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self.assertEqual(
                strategy.calculate_timelock_duration_and_fee("alice", 100 * ONE, "ticket"),
                (PERIOD, 0),
            )

            unlock = strategy.pool.withdraw_with_timelock_from(
                "alice", "alice", 100 * ONE, "ticket"
            )
            self.assertEqual(unlock, START + PERIOD)
            self.assertEqual(strategy.timelock_balance_of("alice"), 100 * ONE)
            self.assertEqual(strategy.timelock_balance_available_at("alice"), unlock)
            self.assertEqual(strategy.chance_of("alice"), 0)
            self.assertEqual(strategy.pool.accounted_balance, 100 * ONE)

            self.assertEqual(strategy.sweep_timelock_balances(["alice"]), 0)
            self.clock.advance(PERIOD)
            self.assertEqual(strategy.sweep_timelock_balances(["alice"]), 100 * ONE)
            self.assertEqual(self._balance(strategy, "dai", "alice"), 1_000 * ONE)
            self.assertEqual(strategy.timelock_balance_of("alice"), 0)
            self.assertEqual(strategy.pool.accounted_balance, 0)
            self.assertEqual(len(PoolEvent.named(session, "TimelockedWithdrawalSwept")), 1)

    def test_timelocks_coalesce(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session, max_timelock_duration=300)
            self._deposit(strategy, "alice", 100 * ONE)

            first = strategy.pool.withdraw_with_timelock_from(
                "alice", "alice", 40 * ONE, "ticket"
            )
            self.assertEqual(first, START + 300)
            self.clock.advance(100)
            second = strategy.pool.withdraw_with_timelock_from(
                "alice", "alice", 60 * ONE, "ticket"
            )
            self.assertEqual(second, START + 400)
            self.assertEqual(strategy.timelock_balance_of("alice"), 100 * ONE)

            self.clock.set(START + 350)
            self.assertEqual(strategy.sweep_timelock_balances(["alice"]), 0)
            self.clock.set(START + 400)
            self.assertEqual(strategy.sweep_timelock_balances(["alice", "bob"]), 100 * ONE)

    def test_covered_fee_releases_immediately(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self.clock.advance(PERIOD)

            unlock = strategy.pool.withdraw_with_timelock_from(
                "alice", "alice", 100 * ONE, "ticket"
            )
            self.assertEqual(unlock, START + PERIOD)
            self.assertEqual(strategy.timelock_balance_of("alice"), 0)
            self.assertEqual(self._balance(strategy, "dai", "alice"), 1_000 * ONE)
            self.assertEqual(strategy.balance_of_credit("alice", "ticket"), 0)

    def test_sweep_needs_liquidity(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 100 * ONE)
            strategy.pool.withdraw_with_timelock_from("alice", "alice", 100 * ONE, "ticket")
            self.clock.advance(PERIOD)
            self.vault.locked = 100 * ONE

            with self.assertRaises(InsufficientLiquidity):
                strategy.sweep_timelock_balances(["alice"])
            self.assertEqual(strategy.timelock_balance_of("alice"), 100 * ONE)

    def test_matured_timelock_fails_whole_without_liquidity(self):
        with self.Session.begin() as session:
            strategy = self._open_with_fees(session)
            self._deposit(strategy, "alice", 100 * ONE)
            self.clock.advance(PERIOD)
            self.vault.locked = 100 * ONE

            with self.assertRaises(InsufficientLiquidity):
                strategy.pool.withdraw_with_timelock_from(
                    "alice", "alice", 100 * ONE, "ticket"
                )
            self.assertEqual(self._balance(strategy, "ticket", "alice"), 100 * ONE)
            self.assertEqual(strategy.timelock_balance_of("alice"), 0)
            self.assertEqual(strategy.chance_of("alice"), 100 * ONE)


class TestExternalAwards(PrizeStrategyTestCase):
    def _setup_tokens(self, session):
        ledger = TokenLedger(session)
        comp = ledger.register("comp", "erc20")
        nft = ledger.register("nft", "erc721")
        return ledger, comp, nft

    def test_registry_rules(self):
        with self.Session.begin() as session:
            ledger, comp, nft = self._setup_tokens(session)
            strategy = self._open(session)
            ledger.mint_nonfungible(nft, 1, "pool")
            ledger.mint_nonfungible(nft, 2, "bob")

            with self.assertRaises(Unauthorized):
                strategy.add_external_erc20_award("alice", "comp")
            with self.assertRaises(UnapprovedExternalToken):
                strategy.add_external_erc20_award("admin", "dai")
            with self.assertRaises(UnapprovedExternalToken):
                strategy.add_external_erc20_award("admin", "ticket")
            with self.assertRaises(UnapprovedExternalToken):
                strategy.add_external_erc20_award("admin", "nft")
            with self.assertRaises(TokenNotHeldByPool):
                strategy.add_external_erc721_award("admin", "nft", [1, 2])
            self.assertEqual(strategy.external_erc721_awards(), {})

            strategy.add_external_erc20_award("admin", "comp")
            strategy.add_external_erc20_award("admin", "comp")
            strategy.add_external_erc721_award("admin", "nft", [1])
            strategy.add_external_erc721_award("admin", "nft", [1])
            self.assertEqual(strategy.external_erc20_awards(), ["comp"])
            self.assertEqual(strategy.external_erc721_awards(), {"nft": [1]})

    def test_winner_receives_external_awards(self):
        with self.Session.begin() as session:
            ledger, comp, nft = self._setup_tokens(session)
            strategy = self._open(session)
            ledger.mint(comp, "pool", 7 * ONE)
            ledger.mint_nonfungible(nft, 1, "pool")
            strategy.add_external_erc20_award("admin", "comp")
            strategy.add_external_erc721_award("admin", "nft", [1])

            self._deposit(strategy, "alice", 100 * ONE)
            self.clock.advance(PERIOD)
            self.assertEqual(self._run_award(strategy, 42), "alice")

            self.assertEqual(ledger.balance_of(comp, "alice"), 7 * ONE)
            self.assertEqual(ledger.owner_of(nft, 1), "alice")
            self.assertEqual(strategy.external_erc20_awards(), [])
            self.assertEqual(strategy.external_erc721_awards(), {})


if __name__ == "__main__":
    unittest.main()
