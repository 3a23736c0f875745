"""Prize strategy: the periodic draw state machine and the credit ledger."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..clock import Clock
from ..errors import (
    DrawNotComplete,
    DrawNotReady,
    InsufficientBalance,
    RngInFlight,
    TokenNotHeldByPool,
    Unauthorized,
    UnapprovedExternalToken,
    UnknownToken,
)
from ..fixed_point import require_fraction
from ..models.award import ExternalErc20Award, ExternalErc721Award
from ..models.credit import CreditAccount, TimelockEntry
from ..models.event import PoolEvent
from ..models.strategy import PrizeStrategyRecord
from ..models.token import Token
from ..prize_pool.pool import PrizePool, TokenListener
from ..rng.base import RNGRegistry, RNGService
from ..sortition import DEFAULT_DEPTH, SessionNodeStore, SortitionSumTree
from . import credit as credit_math
from . import period as period_math

logger = logging.getLogger(__name__)


class PrizeStrategy(TokenListener):
    """Engine bound to one :class:`PrizeStrategyRecord`.

    The strategy is ``Idle`` until the prize period ends and someone calls
    :meth:`start_award`, which requests a random number and ``Locks`` the
    strategy.  Once the oracle has answered, :meth:`complete_award` draws the
    winner, pays out through the pool and returns to ``Idle``.  While locked,
    nothing that would change ticket weights is allowed, so the draw sees the
    same weights the randomness was requested against.

    Constructing a strategy registers it as the pool's hook listener.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used for lookups and persistence.
    record : PrizeStrategyRecord
        Persisted strategy state.
    pool : PrizePool
        Pool the strategy awards through.
    rng_registry : RNGRegistry
        Registry the record's ``rng_service_key`` is resolved against.
    clock : Optional[Clock], default: None
        Time source; the pool's clock when omitted.
    tree_depth : int, default: 32
        Depth of the sortition tree; it must not change for a given record.
    """

    def __init__(
        self,
        session: Session,
        record: PrizeStrategyRecord,
        pool: PrizePool,
        *,
        rng_registry: RNGRegistry,
        clock: Optional[Clock] = None,
        tree_depth: int = DEFAULT_DEPTH,
    ) -> None:
        if record.prize_pool_id != pool.record.id:
            raise ValueError("Strategy record belongs to a different prize pool")
        self._session = session
        self._record = record
        self._pool = pool
        self._rng_registry = rng_registry
        self._clock = clock or pool.clock
        self._tree = SortitionSumTree(
            SessionNodeStore(session, record.id), depth=tree_depth
        )
        pool.listener = self

    @classmethod
    def initialize(
        cls,
        session: Session,
        *,
        address: str,
        admin: str,
        prize_period_seconds: int,
        pool: PrizePool,
        ticket: str,
        sponsorship: Optional[str],
        rng_registry: RNGRegistry,
        rng_service_key: str,
        initial_external_awards: Sequence[str] = (),
        credit_rate_mantissa: int = 0,
        exit_fee_mantissa: int = 0,
        prize_period_start: Optional[int] = None,
        clock: Optional[Clock] = None,
        tree_depth: int = DEFAULT_DEPTH,
    ) -> "PrizeStrategy":
        """Create and persist a strategy over ``pool`` and return an engine for it.

        Parameters
        ----------
        ticket : str
            Address of the weighted controlled token.
        sponsorship : Optional[str]
            Address of the non-weighted controlled token, if any.
        initial_external_awards : Sequence[str], default: ()
            Fungible tokens queued as external awards from the start.
        prize_period_start : Optional[int], default: None
            UNIX start of the first period; now when omitted.

        Raises
        ------
        UnapprovedExternalToken
            If an initial external award fails the pool policy.
        UnknownToken
            If ``ticket`` or ``sponsorship`` is not controlled by ``pool``.
        """

        if prize_period_seconds <= 0:
            raise ValueError("prize_period_seconds must be positive")
        require_fraction("exit_fee_mantissa", exit_fee_mantissa)
        if credit_rate_mantissa < 0:
            raise ValueError("credit_rate_mantissa must be non-negative")
        rng_registry.get(rng_service_key)
        if PrizeStrategyRecord.get_by_address(session, address) is not None:
            raise ValueError(f"Prize strategy '{address}' already exists")

        ticket_token = _pool_token(pool, ticket)
        sponsorship_token = _pool_token(pool, sponsorship) if sponsorship else None
        if sponsorship_token is not None and sponsorship_token.id == ticket_token.id:
            raise ValueError("ticket and sponsorship must be different tokens")
        for token_address in initial_external_awards:
            if not pool.can_award_external(token_address):
                raise UnapprovedExternalToken(
                    f"Token '{token_address}' cannot be awarded by this pool"
                )

        clock = clock or pool.clock
        started_at = clock.now() if prize_period_start is None else prize_period_start
        record = PrizeStrategyRecord(
            address=address,
            admin=admin,
            prize_pool=pool.record,
            ticket=ticket_token,
            sponsorship=sponsorship_token,
            prize_period_seconds=prize_period_seconds,
            prize_period_started_at=started_at,
            rng_service_key=rng_service_key,
            credit_rate_mantissa=credit_rate_mantissa,
            exit_fee_mantissa=exit_fee_mantissa,
        )
        session.add(record)
        session.flush()

        strategy = cls(
            session,
            record,
            pool,
            rng_registry=rng_registry,
            clock=clock,
            tree_depth=tree_depth,
        )
        for token_address in initial_external_awards:
            strategy._queue_erc20(pool.ledger.get(token_address))
        strategy._emit(
            "PrizeStrategyInitialized",
            {
                "address": address,
                "admin": admin,
                "prize_pool": pool.address,
                "prize_period_seconds": prize_period_seconds,
                "prize_period_started_at": started_at,
                "ticket": ticket,
                "sponsorship": sponsorship,
                "rng_service": rng_service_key,
                "credit_rate_mantissa": credit_rate_mantissa,
                "exit_fee_mantissa": exit_fee_mantissa,
                "external_erc20_awards": list(initial_external_awards),
            },
        )
        session.flush()
        return strategy

    # -------- plumbing --------
    @contextmanager
    def _atomic(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield
        self._session.flush()

    def _emit(self, name: str, payload: dict) -> None:
        PoolEvent.record(
            self._session,
            name,
            payload,
            pool_id=self._pool.record.id,
            strategy_id=self._record.id,
        )

    def _require_admin(self, caller: str) -> None:
        if caller != self._record.admin:
            raise Unauthorized("caller is not the strategy administrator")

    def _require_pool(self, caller: str) -> None:
        if caller != self._pool.address:
            raise Unauthorized("only the prize pool may call this hook")

    def _require_not_locked(self) -> None:
        if self._record.is_locked:
            raise RngInFlight("a random number request is in flight")

    def _token(self, address: str) -> Token:
        return _pool_token(self._pool, address)

    def _is_ticket(self, token_address: str) -> bool:
        return token_address == self._record.ticket.address

    # -------- read-only --------
    @property
    def record(self) -> PrizeStrategyRecord:
        return self._record

    @property
    def address(self) -> str:
        return self._record.address

    @property
    def pool(self) -> PrizePool:
        return self._pool

    @property
    def ticket(self) -> Token:
        return self._record.ticket

    @property
    def sponsorship(self) -> Optional[Token]:
        return self._record.sponsorship

    @property
    def prize_period_seconds(self) -> int:
        return self._record.prize_period_seconds

    @property
    def prize_period_started_at(self) -> int:
        return self._record.prize_period_started_at

    @property
    def credit_rate_mantissa(self) -> int:
        return self._record.credit_rate_mantissa

    @property
    def exit_fee_mantissa(self) -> int:
        return self._record.exit_fee_mantissa

    @property
    def rng_service(self) -> RNGService:
        return self._rng_registry.get(self._record.rng_service_key)

    @property
    def rng_request_id(self) -> Optional[str]:
        return self._record.rng_request_id

    def is_rng_requested(self) -> bool:
        return self._record.is_locked

    def is_rng_completed(self) -> bool:
        request_id = self._record.rng_request_id
        if request_id is None:
            return False
        return self.rng_service.is_request_complete(request_id)

    def prize_period_end_at(self) -> int:
        return period_math.prize_period_end_at(
            self._record.prize_period_started_at, self._record.prize_period_seconds
        )

    def prize_period_remaining_seconds(self) -> int:
        return period_math.prize_period_remaining_seconds(
            self._record.prize_period_started_at,
            self._record.prize_period_seconds,
            self._clock.now(),
        )

    def is_prize_period_over(self) -> bool:
        return self._clock.now() >= self.prize_period_end_at()

    def calculate_next_prize_period_start_time(self, current_time: int) -> int:
        return period_math.calculate_next_prize_period_start_time(
            self._record.prize_period_started_at,
            self._record.prize_period_seconds,
            current_time,
        )

    def current_prize(self) -> int:
        """Interest available right now, less the reserve cut."""
        return self._pool.net_award_balance()

    def estimate_remaining_prize(self) -> int:
        """Interest expected to arrive before the period ends, less reserve."""
        interest = self._pool.estimate_accrued_interest(
            self.prize_period_remaining_seconds()
        )
        return interest - self._pool.reserve_fee(interest)

    def estimate_prize(self) -> int:
        return self.current_prize() + self.estimate_remaining_prize()

    def chance_of(self, user: str) -> int:
        """Ticket weight of ``user`` in the draw."""
        return self._tree.weight_of(user)

    def total_weight(self) -> int:
        return self._tree.total()

    def draw(self, random_number: int) -> Optional[str]:
        """Select a participant for ``random_number``; ``None`` when nobody holds tickets."""
        total = self._tree.total()
        if total == 0:
            return None
        return self._tree.draw(random_number % total)

    # -------- configuration --------
    def set_credit_rate_mantissa(self, caller: str, credit_rate_mantissa: int) -> None:
        self._require_admin(caller)
        self._require_not_locked()
        if credit_rate_mantissa < 0:
            raise ValueError("credit_rate_mantissa must be non-negative")
        with self._atomic():
            old = self._record.credit_rate_mantissa
            self._record.credit_rate_mantissa = credit_rate_mantissa
            self._emit("CreditRateUpdated", {"old": old, "new": credit_rate_mantissa})

    def set_exit_fee_mantissa(self, caller: str, exit_fee_mantissa: int) -> None:
        self._require_admin(caller)
        self._require_not_locked()
        require_fraction("exit_fee_mantissa", exit_fee_mantissa)
        with self._atomic():
            old = self._record.exit_fee_mantissa
            self._record.exit_fee_mantissa = exit_fee_mantissa
            self._emit("ExitFeeUpdated", {"old": old, "new": exit_fee_mantissa})

    def set_rng_service(self, caller: str, rng_service_key: str) -> None:
        """Point the strategy at another randomness service.

        Refused while a request is outstanding, since the pending request
        could never be completed against the new service.
        """
        self._require_admin(caller)
        self._require_not_locked()
        self._rng_registry.get(rng_service_key)
        with self._atomic():
            old = self._record.rng_service_key
            self._record.rng_service_key = rng_service_key
            self._emit("RngServiceUpdated", {"old": old, "new": rng_service_key})

    # -------- credit --------
    def _credit_account(self, holder: str, token: Token) -> Optional[CreditAccount]:
        return self._session.scalar(
            select(CreditAccount).where(
                CreditAccount.strategy_id == self._record.id,
                CreditAccount.token_id == token.id,
                CreditAccount.holder == holder,
            )
        )

    def _accrued_credit(self, holder: str, token: Token, balance: int) -> int:
        account = self._credit_account(holder, token)
        if account is None:
            return 0
        return credit_math.accrue_credit(
            account.balance,
            account.timestamp,
            balance,
            self._clock.now(),
            self._record.credit_rate_mantissa,
            self._record.exit_fee_mantissa,
        )

    def _accrue_credit(
        self, holder: str, token: Token, balance: int, burned: int = 0
    ) -> int:
        """Bring the holder's credit up to now for ``balance``, then burn ``burned``."""
        now = self._clock.now()
        account = self._credit_account(holder, token)
        if account is None:
            account = CreditAccount(
                strategy_id=self._record.id,
                token_id=token.id,
                holder=holder,
                balance=0,
                timestamp=now,
            )
            self._session.add(account)
        accrued = credit_math.accrue_credit(
            account.balance,
            account.timestamp,
            balance,
            now,
            self._record.credit_rate_mantissa,
            self._record.exit_fee_mantissa,
        )
        account.balance = accrued - min(burned, accrued)
        account.timestamp = now
        self._session.flush()
        return account.balance

    def balance_of_credit(self, user: str, token_address: str) -> int:
        """Credit ``user`` holds for ``token_address`` as of now."""
        token = self._token(token_address)
        balance = self._pool.ledger.balance_of(token, user)
        return self._accrued_credit(user, token, balance)

    def calculate_instant_withdrawal_fee(
        self, from_: str, amount: int, token: str
    ) -> tuple[int, int]:
        """Return ``(remaining_fee, burned_credit)`` for withdrawing ``amount`` now."""
        token_record = self._token(token)
        balance = self._pool.ledger.balance_of(token_record, from_)
        available = self._accrued_credit(from_, token_record, balance)
        return credit_math.instant_withdrawal_fee(
            amount, self._record.exit_fee_mantissa, available
        )

    def calculate_timelock_duration_and_fee(
        self, from_: str, amount: int, token: str
    ) -> tuple[int, int]:
        """Return ``(duration_seconds, burned_credit)`` for a timelocked withdrawal.

        When credit covers the whole fee there is nothing to wait for.
        Otherwise the funds unlock when the current prize period ends.
        """
        remaining_fee, burned_credit = self.calculate_instant_withdrawal_fee(
            from_, amount, token
        )
        if remaining_fee == 0:
            return 0, burned_credit
        return self.prize_period_remaining_seconds(), burned_credit

    def estimate_credit_accrual_time(self, balance: int, interest: int) -> int:
        return credit_math.estimate_credit_accrual_time(
            balance, interest, self._record.credit_rate_mantissa
        )

    # -------- pool hooks --------
    def before_balance_change(self, caller: str, token: str) -> None:
        self._require_pool(caller)
        self._require_not_locked()

    def after_deposit_to(self, caller: str, to: str, amount: int, token: str) -> None:
        self._require_pool(caller)
        self._require_not_locked()
        token_record = self._token(token)
        balance = self._pool.ledger.balance_of(token_record, to)
        self._accrue_credit(to, token_record, balance - amount)
        if self._is_ticket(token):
            self._tree.set(to, balance)
        logger.debug("deposit hook: %s +%s %s", to, amount, token)

    def after_withdraw_instantly_from(
        self,
        caller: str,
        operator: str,
        from_: str,
        amount: int,
        token: str,
        exit_fee: int,
        burned_credit: int,
    ) -> None:
        self._require_pool(caller)
        self._require_not_locked()
        token_record = self._token(token)
        balance = self._pool.ledger.balance_of(token_record, from_)
        self._accrue_credit(from_, token_record, balance + amount, burned_credit)
        if self._is_ticket(token):
            self._tree.set(from_, balance)
        logger.debug("instant withdrawal hook: %s -%s %s", from_, amount, token)

    def after_withdraw_with_timelock_from(
        self,
        caller: str,
        from_: str,
        amount: int,
        token: str,
        unlock_timestamp: int,
        burned_credit: int,
    ) -> int:
        """Add ``amount`` to the holder's timelock and return its unlock time.

        Entries coalesce: amounts add up and the later unlock time wins.  An
        entry that has already matured (credit covered the whole fee) is paid
        out at once.  If the vault cannot release it, the withdrawal fails as
        a whole with :class:`InsufficientLiquidity`, the tokens stay with the
        holder, and no timelock entry is left behind.
        """
        self._require_pool(caller)
        self._require_not_locked()
        token_record = self._token(token)
        balance = self._pool.ledger.balance_of(token_record, from_)
        self._accrue_credit(from_, token_record, balance + amount, burned_credit)
        if self._is_ticket(token):
            self._tree.set(from_, balance)

        entry = self._timelock_entry(from_)
        if entry is None:
            entry = TimelockEntry(
                strategy_id=self._record.id,
                holder=from_,
                amount=0,
                unlock_timestamp=unlock_timestamp,
            )
            self._session.add(entry)
        entry.amount = entry.amount + amount
        entry.unlock_timestamp = max(entry.unlock_timestamp, unlock_timestamp)
        self._session.flush()
        effective_unlock = entry.unlock_timestamp

        if effective_unlock <= self._clock.now():
            self._sweep([from_])
        return effective_unlock

    def before_token_transfer(
        self,
        caller: str,
        from_: Optional[str],
        to: Optional[str],
        amount: int,
        token: str,
    ) -> None:
        self._require_pool(caller)
        if self._is_ticket(token):
            self._require_not_locked()
        # Mints and burns are settled by the deposit, withdrawal and award paths.
        if from_ is None or to is None or from_ == to:
            return

        token_record = self._token(token)
        ledger = self._pool.ledger
        from_balance = ledger.balance_of(token_record, from_)
        to_balance = ledger.balance_of(token_record, to)
        if from_balance < amount:
            raise InsufficientBalance(
                f"{from_} holds {from_balance} of {token}, needs {amount}"
            )
        self._accrue_credit(from_, token_record, from_balance)
        self._accrue_credit(to, token_record, to_balance)
        if self._is_ticket(token):
            self._tree.set(from_, from_balance - amount)
            self._tree.set(to, to_balance + amount)

    # -------- timelocks --------
    def _timelock_entry(self, holder: str) -> Optional[TimelockEntry]:
        return self._session.scalar(
            select(TimelockEntry).where(
                TimelockEntry.strategy_id == self._record.id,
                TimelockEntry.holder == holder,
            )
        )

    def timelock_balance_of(self, user: str) -> int:
        entry = self._timelock_entry(user)
        return 0 if entry is None else entry.amount

    def timelock_balance_available_at(self, user: str) -> int:
        entry = self._timelock_entry(user)
        return 0 if entry is None else entry.unlock_timestamp

    def _sweep(self, holders: Iterable[str]) -> int:
        now = self._clock.now()
        matured: list[TimelockEntry] = []
        for holder in dict.fromkeys(holders):
            entry = self._timelock_entry(holder)
            if entry is not None and entry.amount > 0 and entry.unlock_timestamp <= now:
                matured.append(entry)
        if not matured:
            return 0

        payouts = {entry.holder: entry.amount for entry in matured}
        total = self._pool.release_timelocked_funds(self._record.address, payouts)
        for entry in matured:
            self._emit(
                "TimelockedWithdrawalSwept",
                {"holder": entry.holder, "amount": entry.amount},
            )
            self._session.delete(entry)
        self._session.flush()
        return total

    def sweep_timelock_balances(self, holders: Iterable[str]) -> int:
        """Pay out every matured timelock among ``holders``; return the total."""
        with self._atomic():
            return self._sweep(holders)

    # -------- external awards --------
    def _queue_erc20(self, token: Token) -> None:
        exists = self._session.scalar(
            select(ExternalErc20Award.id).where(
                ExternalErc20Award.strategy_id == self._record.id,
                ExternalErc20Award.token_id == token.id,
            )
        )
        if exists is None:
            self._session.add(
                ExternalErc20Award(strategy_id=self._record.id, token_id=token.id)
            )
            self._session.flush()

    def add_external_erc20_award(self, caller: str, token_address: str) -> None:
        """Queue the pool's whole balance of ``token_address`` for the next winner."""
        self._require_admin(caller)
        if not self._pool.can_award_external(token_address):
            raise UnapprovedExternalToken(
                f"Token '{token_address}' cannot be awarded by this pool"
            )
        token = self._pool.ledger.get(token_address)
        if not token.is_fungible:
            raise UnapprovedExternalToken(f"Token '{token_address}' is not fungible")
        with self._atomic():
            self._queue_erc20(token)
            self._emit("ExternalErc20AwardAdded", {"token": token_address})

    def add_external_erc721_award(
        self, caller: str, token_address: str, token_ids: Sequence[int]
    ) -> None:
        """Queue non-fungible ``token_ids`` held by the pool for the next winner.

        Raises
        ------
        UnapprovedExternalToken
            If the pool policy refuses ``token_address``.
        TokenNotHeldByPool
            If any id is not owned by the pool. Nothing is queued in that case.
        """
        self._require_admin(caller)
        if not self._pool.can_award_external(token_address):
            raise UnapprovedExternalToken(
                f"Token '{token_address}' cannot be awarded by this pool"
            )
        token = self._pool.ledger.get(token_address)
        if token.is_fungible:
            raise UnapprovedExternalToken(f"Token '{token_address}' is fungible")
        for token_id in token_ids:
            if self._pool.ledger.owner_of(token, token_id) != self._pool.address:
                raise TokenNotHeldByPool(
                    f"{token_address} #{token_id} is not held by the prize pool"
                )

        with self._atomic():
            queued = set(self._queued_erc721(token))
            for token_id in dict.fromkeys(token_ids):
                if token_id in queued:
                    continue
                self._session.add(
                    ExternalErc721Award(
                        strategy_id=self._record.id,
                        token_id=token.id,
                        token_number=token_id,
                    )
                )
            self._emit(
                "ExternalErc721AwardAdded",
                {"token": token_address, "token_ids": list(token_ids)},
            )

    def _queued_erc721(self, token: Token) -> list[int]:
        stmt = (
            select(ExternalErc721Award.token_number)
            .where(
                ExternalErc721Award.strategy_id == self._record.id,
                ExternalErc721Award.token_id == token.id,
            )
            .order_by(ExternalErc721Award.id.asc())
        )
        return list(self._session.scalars(stmt))

    def external_erc20_awards(self) -> list[str]:
        stmt = (
            select(ExternalErc20Award)
            .where(ExternalErc20Award.strategy_id == self._record.id)
            .order_by(ExternalErc20Award.id.asc())
        )
        return [award.token.address for award in self._session.scalars(stmt)]

    def external_erc721_awards(self) -> dict[str, list[int]]:
        stmt = (
            select(ExternalErc721Award)
            .where(ExternalErc721Award.strategy_id == self._record.id)
            .order_by(ExternalErc721Award.id.asc())
        )
        awards: dict[str, list[int]] = {}
        for award in self._session.scalars(stmt):
            awards.setdefault(award.token.address, []).append(award.token_number)
        return awards

    def _award_external(self, winner: str) -> None:
        ledger = self._pool.ledger
        erc20_rows = list(
            self._session.scalars(
                select(ExternalErc20Award)
                .where(ExternalErc20Award.strategy_id == self._record.id)
                .order_by(ExternalErc20Award.id.asc())
            )
        )
        for row in erc20_rows:
            amount = ledger.balance_of(row.token, self._pool.address)
            self._pool.award_external_erc20(
                self._record.address, winner, row.token.address, amount
            )
            self._session.delete(row)

        for token_address, token_ids in self.external_erc721_awards().items():
            self._pool.award_external_erc721(
                self._record.address, winner, token_address, token_ids
            )
        erc721_rows = self._session.scalars(
            select(ExternalErc721Award).where(
                ExternalErc721Award.strategy_id == self._record.id
            )
        )
        for row in list(erc721_rows):
            self._session.delete(row)
        self._session.flush()

    # -------- award state machine --------
    def can_start_award(self) -> bool:
        return self.is_prize_period_over() and not self._record.is_locked

    def can_complete_award(self) -> bool:
        return self._record.is_locked and self.is_rng_completed()

    def start_award(self, caller: str) -> str:
        """Request randomness and lock the strategy.

        The prize amount and the total ticket weight are snapshotted here so
        that nothing done between request and completion can change them.

        Returns
        -------
        str
            The randomness request handle.

        Raises
        ------
        DrawNotReady
            If the prize period has not ended or a request is already in flight.
        """
        if not self.can_start_award():
            raise DrawNotReady("prize period has not ended or an award is in progress")

        with self._atomic():
            prize = self._pool.capture_award_balance(self._record.address)
            total_weight = self._tree.total()
            request_id = self.rng_service.request_random_number()
            self._record.rng_request_id = str(request_id)
            self._record.rng_requested_at = self._clock.now()
            self._record.award_snapshot = prize
            self._record.total_weight_snapshot = total_weight
            self._emit(
                "AwardStarted",
                {
                    "operator": caller,
                    "rng_request_id": request_id,
                    "prize": prize,
                    "total_weight": total_weight,
                },
            )
        return str(request_id)

    def complete_award(self, caller: str) -> Optional[str]:
        """Draw the winner, pay the captured prize and start the next period.

        Returns
        -------
        Optional[str]
            The winner, or ``None`` when nobody held tickets.  With no winner the
            prize stays in the pool and external awards stay queued.

        Raises
        ------
        DrawNotComplete
            If no request is in flight or the oracle has not answered yet.
        """
        if not self.can_complete_award():
            raise DrawNotComplete("no completed random number request")

        with self._atomic():
            request_id = self._record.rng_request_id
            random_number = self.rng_service.random_number(request_id)
            prize = self._record.award_snapshot or 0
            total_weight = self._record.total_weight_snapshot or 0

            self._record.rng_request_id = None
            self._record.rng_requested_at = None
            self._record.award_snapshot = None
            self._record.total_weight_snapshot = None

            winner: Optional[str] = None
            if total_weight > 0:
                winner = self._tree.draw(random_number % total_weight)

            awarded = 0
            if winner is not None:
                ticket = self._record.ticket
                self._pool.award(self._record.address, winner, prize, ticket.address)
                awarded = prize
                balance = self._pool.ledger.balance_of(ticket, winner)
                self._tree.set(winner, balance)
                self._accrue_credit(winner, ticket, balance)
                self._award_external(winner)

            now = self._clock.now()
            self._record.prize_period_started_at = (
                self.calculate_next_prize_period_start_time(now)
            )
            self._emit(
                "AwardCompleted",
                {
                    "operator": caller,
                    "rng_request_id": request_id,
                    "random_number": random_number,
                    "winner": winner,
                    "prize": awarded,
                },
            )
        return winner


def _pool_token(pool: PrizePool, address: str) -> Token:
    token = pool.ledger.get(address)
    if token.kind != "controlled" or token.controller != pool.address:
        raise UnknownToken(f"Token '{address}' is not controlled by the pool")
    return token


__all__ = ["PrizeStrategy"]
