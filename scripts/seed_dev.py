"""Reset the development database and create a sample prize pool.

Only persistent configuration is seeded: tokens, the pool, its strategy and
underlying balances for two participants.  Vault and randomness services are
in-process objects, so deposits are left to whoever runs the pool next.
"""

from sqlalchemy.orm import sessionmaker

from prizesave.db.engine import get_sessionmaker, make_engine
from prizesave.fixed_point import to_mantissa
from prizesave.models import Base
from prizesave.prize_pool import TokenLedger
from prizesave.rng import LocalRNG, RNGRegistry
from prizesave.vault import SimulatedVault
from prizesave.workflows import open_prize_pool

ADMIN = "dev-admin"
PARTICIPANTS = ("alice", "bob")
DAY = 24 * 60 * 60


def main() -> None:
    engine = make_engine()

    # Tables reference each other without cycles, so a plain reset works.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session: sessionmaker = get_sessionmaker(engine)

    registry = RNGRegistry()
    registry.register("local", LocalRNG())

    with Session.begin() as session:
        ledger = TokenLedger(session)
        underlying = ledger.register("dai", "erc20", symbol="DAI")
        for participant in PARTICIPANTS:
            ledger.mint(underlying, participant, 1_000 * 10**18)

        strategy = open_prize_pool(
            session,
            admin=ADMIN,
            pool_address="dev-pool",
            strategy_address="dev-strategy",
            underlying="dai",
            vault=SimulatedVault(),
            rng_registry=registry,
            rng_service_key="local",
            prize_period_seconds=7 * DAY,
            ticket="dev-ticket",
            sponsorship="dev-sponsorship",
            credit_rate_mantissa=to_mantissa("0.1") // (7 * DAY),
            exit_fee_mantissa=to_mantissa("0.1"),
            max_exit_fee_mantissa=to_mantissa("0.5"),
            max_timelock_duration=14 * DAY,
            vault_key="simulated",
        )
        print(
            f"Seeded pool {strategy.pool.address} with strategy {strategy.address}; "
            f"period ends at {strategy.prize_period_end_at()}"
        )


if __name__ == "__main__":
    main()
