from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from .clock import Clock
from .fixed_point import SCALE
from .models.strategy import PrizeStrategyRecord
from .prize_pool import PrizePool, TokenLedger
from .prize_strategy import PrizeStrategy
from .rng import RNGRegistry
from .vault import YieldVault


@dataclass
class AwardCycleOutcome:
    """What a single :func:`run_award_cycle` call did.

    Attributes
    ----------
    action : str
        ``"started"``, ``"completed"`` or ``"idle"`` when nothing was due.
    rng_request_id : Optional[str]
        Randomness request handle involved, if any.
    winner : Optional[str]
        Winner of a completed award; ``None`` when nobody held tickets.
    prize : int
        Amount awarded to the winner.
    """

    action: str
    rng_request_id: Optional[str] = None
    winner: Optional[str] = None
    prize: int = 0


def open_prize_pool(
    session: Session,
    *,
    admin: str,
    pool_address: str,
    strategy_address: str,
    underlying: str,
    vault: YieldVault,
    rng_registry: RNGRegistry,
    rng_service_key: str,
    prize_period_seconds: int,
    ticket: str,
    sponsorship: Optional[str] = None,
    credit_rate_mantissa: int = 0,
    exit_fee_mantissa: int = 0,
    max_exit_fee_mantissa: int = SCALE,
    max_timelock_duration: Optional[int] = None,
    reserve_rate_mantissa: int = 0,
    initial_external_awards: Sequence[str] = (),
    vault_key: Optional[str] = None,
    prize_period_start: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> PrizeStrategy:
    """Create a pool, its controlled tokens and its prize strategy in one go.

    The steps performed are:

    1. Open the :class:`PrizePool` over the already registered ``underlying``
       token and ``vault``.
    2. Register the ``ticket`` (and optional ``sponsorship``) tokens as
       controlled by the new pool.
    3. Initialize the :class:`PrizeStrategy` and make it the pool's strategy.

    Everything happens inside one SAVEPOINT, so a failure leaves nothing
    behind.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    admin : str
        Administrator of both the pool and the strategy.
    underlying : str
        Address of the deposited asset. Must already be registered.
    max_timelock_duration : Optional[int], default: None
        Longest timelock the pool accepts; one prize period when omitted.

    Returns
    -------
    PrizeStrategy
        The strategy engine; its pool is available as ``strategy.pool``.
    """

    ledger = TokenLedger(session)
    if max_timelock_duration is None:
        max_timelock_duration = prize_period_seconds

    with session.begin_nested():
        pool = PrizePool.open(
            session,
            address=pool_address,
            admin=admin,
            underlying=ledger.get(underlying),
            vault=vault,
            max_exit_fee_mantissa=max_exit_fee_mantissa,
            max_timelock_duration=max_timelock_duration,
            reserve_rate_mantissa=reserve_rate_mantissa,
            vault_key=vault_key,
            clock=clock,
        )
        pool.create_controlled_token(admin, ticket, symbol="TICKET")
        if sponsorship is not None:
            pool.create_controlled_token(admin, sponsorship, symbol="SPONSOR")
        strategy = PrizeStrategy.initialize(
            session,
            address=strategy_address,
            admin=admin,
            prize_period_seconds=prize_period_seconds,
            pool=pool,
            ticket=ticket,
            sponsorship=sponsorship,
            rng_registry=rng_registry,
            rng_service_key=rng_service_key,
            initial_external_awards=initial_external_awards,
            credit_rate_mantissa=credit_rate_mantissa,
            exit_fee_mantissa=exit_fee_mantissa,
            prize_period_start=prize_period_start,
            clock=clock,
        )
        pool.set_prize_strategy(admin, strategy_address)
    session.flush()
    return strategy


def bind_prize_strategy(
    session: Session,
    strategy_address: str,
    *,
    vault: YieldVault,
    rng_registry: RNGRegistry,
    clock: Optional[Clock] = None,
) -> PrizeStrategy:
    """Rebuild the engines for a strategy persisted earlier.

    Raises
    ------
    LookupError
        If no strategy is registered under ``strategy_address``.
    """

    record = PrizeStrategyRecord.get_by_address(session, strategy_address)
    if record is None:
        raise LookupError(f"Prize strategy '{strategy_address}' not found")
    pool = PrizePool(session, record.prize_pool, vault, clock=clock)
    return PrizeStrategy(session, record, pool, rng_registry=rng_registry, clock=clock)


def run_award_cycle(strategy: PrizeStrategy, operator: str) -> AwardCycleOutcome:
    """Advance the award state machine by at most one step.

    Meant to be called repeatedly by a scheduler: it starts an award when
    the prize period is over, completes it once the randomness service has
    answered, and does nothing otherwise.
    """

    if strategy.can_complete_award():
        request_id = strategy.rng_request_id
        prize = strategy.record.award_snapshot or 0
        winner = strategy.complete_award(operator)
        return AwardCycleOutcome(
            action="completed",
            rng_request_id=request_id,
            winner=winner,
            prize=prize if winner is not None else 0,
        )
    if strategy.can_start_award():
        request_id = strategy.start_award(operator)
        return AwardCycleOutcome(action="started", rng_request_id=request_id)
    return AwardCycleOutcome(action="idle", rng_request_id=strategy.rng_request_id)


__all__ = [
    "AwardCycleOutcome",
    "bind_prize_strategy",
    "open_prize_pool",
    "run_award_cycle",
]
