"""Custodial prize pool: principal accounting against a yield vault."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..clock import Clock, SystemClock
from ..errors import (
    ExitFeeExceeded,
    InsufficientLiquidity,
    Unauthorized,
    UnknownToken,
)
from ..fixed_point import multiply_by_mantissa, require_fraction
from ..models.event import PoolEvent
from ..models.pool import PrizePoolRecord
from ..models.token import Token
from ..vault.base import YieldVault
from .tokens import TokenLedger

logger = logging.getLogger(__name__)


class TokenListener:
    """Hooks the pool invokes on its prize strategy.

    Every hook receives ``caller``, the pool's own address, so the listener
    can refuse calls that do not come from its pool.  The default
    implementation charges no fees and ignores every event.
    """

    def calculate_instant_withdrawal_fee(
        self, from_: str, amount: int, token: str
    ) -> tuple[int, int]:
        return 0, 0

    def calculate_timelock_duration_and_fee(
        self, from_: str, amount: int, token: str
    ) -> tuple[int, int]:
        return 0, 0

    def after_deposit_to(self, caller: str, to: str, amount: int, token: str) -> None:
        pass

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
        pass

    def after_withdraw_with_timelock_from(
        self,
        caller: str,
        from_: str,
        amount: int,
        token: str,
        unlock_timestamp: int,
        burned_credit: int,
    ) -> int:
        """Record the timelock and return the holder's effective unlock time."""
        return unlock_timestamp

    def before_balance_change(self, caller: str, token: str) -> None:
        """Called before a deposit or withdrawal of ``token`` moves any funds."""
        pass

    def before_token_transfer(
        self,
        caller: str,
        from_: Optional[str],
        to: Optional[str],
        amount: int,
        token: str,
    ) -> None:
        pass


class PrizePool:
    """Engine bound to one :class:`PrizePoolRecord` and its yield vault.

    The pool owns ``accounted_balance``: the principal it owes participants.
    Anything the vault holds beyond that (and beyond the reserve) is interest
    available to be awarded.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used for lookups and persistence.
    record : PrizePoolRecord
        Persisted pool state.
    vault : YieldVault
        Custodian holding the supplied principal.
    listener : Optional[TokenListener], default: None
        Receiver of deposit, withdrawal and transfer hooks, normally the
        prize strategy.  Without one no fees are charged.
    clock : Optional[Clock], default: None
        Time source; wall-clock time when omitted.
    """

    def __init__(
        self,
        session: Session,
        record: PrizePoolRecord,
        vault: YieldVault,
        *,
        listener: Optional[TokenListener] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._session = session
        self._record = record
        self._vault = vault
        self._ledger = TokenLedger(session)
        self.listener: TokenListener = listener or TokenListener()
        self._clock = clock or SystemClock()

    @classmethod
    def open(
        cls,
        session: Session,
        *,
        address: str,
        admin: str,
        underlying: Token,
        vault: YieldVault,
        max_exit_fee_mantissa: int,
        max_timelock_duration: int,
        reserve_rate_mantissa: int = 0,
        vault_key: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> "PrizePool":
        """Create and persist a new pool record and return an engine for it."""

        if not underlying.is_fungible or underlying.kind == "controlled":
            raise UnknownToken("The underlying asset must be a plain fungible token")
        require_fraction("max_exit_fee_mantissa", max_exit_fee_mantissa)
        require_fraction("reserve_rate_mantissa", reserve_rate_mantissa)
        if max_timelock_duration < 0:
            raise ValueError("max_timelock_duration must be non-negative")
        if PrizePoolRecord.get_by_address(session, address) is not None:
            raise ValueError(f"Prize pool '{address}' already exists")

        record = PrizePoolRecord(
            address=address,
            admin=admin,
            underlying_token=underlying,
            max_exit_fee_mantissa=max_exit_fee_mantissa,
            max_timelock_duration=max_timelock_duration,
            reserve_rate_mantissa=reserve_rate_mantissa,
            vault_key=vault_key,
        )
        session.add(record)
        session.flush()
        PoolEvent.record(
            session,
            "PrizePoolInitialized",
            {
                "address": address,
                "admin": admin,
                "underlying": underlying.address,
                "vault": vault_key,
                "max_exit_fee_mantissa": max_exit_fee_mantissa,
                "max_timelock_duration": max_timelock_duration,
                "reserve_rate_mantissa": reserve_rate_mantissa,
            },
            pool_id=record.id,
        )
        return cls(session, record, vault, clock=clock)

    # -------- plumbing --------
    @contextmanager
    def _atomic(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield
        self._session.flush()

    def _require_admin(self, caller: str) -> None:
        if caller != self._record.admin:
            raise Unauthorized("caller is not the pool administrator")

    def _require_strategy(self, caller: str) -> None:
        if (
            self._record.prize_strategy_address is None
            or caller != self._record.prize_strategy_address
        ):
            raise Unauthorized("only the prize strategy may call this")

    def _emit(self, name: str, payload: dict) -> None:
        PoolEvent.record(self._session, name, payload, pool_id=self._record.id)

    def _controlled_token(self, address: str) -> Token:
        token = self._ledger.get(address)
        if token.kind != "controlled" or token.controller != self._record.address:
            raise UnknownToken(f"Token '{address}' is not controlled by this pool")
        return token

    def _check_solvency(self) -> None:
        vault_balance = self._vault.balance()
        if self._record.accounted_balance > vault_balance:
            logger.warning(
                "vault fault: pool %s accounts %s but vault holds %s",
                self._record.address,
                self._record.accounted_balance,
                vault_balance,
            )

    def _supply_to_vault(self, amount: int) -> None:
        # Underlying handed to the vault leaves the ledger; the vault tracks it.
        self._ledger.burn(self.token, self._record.address, amount)
        self._vault.supply(amount)

    def _redeem_from_vault(self, amount: int) -> int:
        if amount > self._vault.available_liquidity():
            raise InsufficientLiquidity(
                f"cannot redeem {amount}; vault liquidity is "
                f"{self._vault.available_liquidity()}"
            )
        actual = self._vault.redeem(amount)
        self._ledger.mint(self.token, self._record.address, actual)
        return actual

    def _mint(self, to: str, amount: int, token: Token) -> None:
        self.listener.before_token_transfer(
            self._record.address, None, to, amount, token.address
        )
        self._ledger.mint(token, to, amount)

    def _burn(self, from_: str, amount: int, token: Token) -> None:
        self.listener.before_token_transfer(
            self._record.address, from_, None, amount, token.address
        )
        self._ledger.burn(token, from_, amount)

    # -------- read-only --------
    @property
    def record(self) -> PrizePoolRecord:
        return self._record

    @property
    def address(self) -> str:
        return self._record.address

    @property
    def token(self) -> Token:
        """The underlying asset."""
        return self._record.underlying_token

    @property
    def vault(self) -> YieldVault:
        return self._vault

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def accounted_balance(self) -> int:
        return self._record.accounted_balance

    @property
    def reserve_total(self) -> int:
        return self._record.reserve_total

    def controlled_tokens(self) -> list[Token]:
        """Tokens this pool mints and burns, in creation order."""
        stmt = (
            select(Token)
            .where(Token.kind == "controlled", Token.controller == self._record.address)
            .order_by(Token.id.asc())
        )
        return list(self._session.scalars(stmt))

    def balance(self) -> int:
        """Vault balance: principal plus accrued interest."""
        return self._vault.balance()

    def award_balance(self) -> int:
        """Interest not owed to anyone and not yet withheld as reserve."""
        return max(
            0,
            self._vault.balance()
            - self._record.accounted_balance
            - self._record.reserve_total,
        )

    def reserve_fee(self, amount: int) -> int:
        return multiply_by_mantissa(amount, self._record.reserve_rate_mantissa)

    def net_award_balance(self) -> int:
        """What :meth:`capture_award_balance` would return right now."""
        total = self.award_balance()
        captured = min(self._record.captured_award_balance, total)
        return total - self.reserve_fee(total - captured)

    def estimate_accrued_interest(self, seconds: int) -> int:
        """Interest the accounted principal should earn over ``seconds``."""
        return self._vault.estimate_accrued_interest(
            self._record.accounted_balance, seconds
        )

    def can_award_external(self, token_address: str) -> bool:
        """Whether ``token_address`` may be handed out as an external award.

        The underlying asset and the pool's own controlled tokens are refused
        since awarding them would pay out principal.
        """
        token = Token.get_by_address(self._session, token_address)
        if token is None:
            return False
        if token.id == self._record.underlying_token_id:
            return False
        if token.kind == "controlled" and token.controller == self._record.address:
            return False
        return True

    # -------- configuration --------
    def create_controlled_token(
        self, caller: str, address: str, *, symbol: Optional[str] = None
    ) -> Token:
        """Register a token minted and burned only by this pool."""
        self._require_admin(caller)
        with self._atomic():
            token = self._ledger.register(
                address, "controlled", symbol=symbol, controller=self._record.address
            )
            self._emit("ControlledTokenAdded", {"token": address, "symbol": symbol})
        return token

    def set_prize_strategy(self, caller: str, strategy_address: str) -> None:
        self._require_admin(caller)
        with self._atomic():
            old = self._record.prize_strategy_address
            self._record.prize_strategy_address = strategy_address
            self._emit("PrizeStrategySet", {"old": old, "new": strategy_address})

    def set_reserve_rate_mantissa(self, caller: str, reserve_rate_mantissa: int) -> None:
        self._require_admin(caller)
        require_fraction("reserve_rate_mantissa", reserve_rate_mantissa)
        with self._atomic():
            old = self._record.reserve_rate_mantissa
            self._record.reserve_rate_mantissa = reserve_rate_mantissa
            self._emit(
                "ReserveRateUpdated", {"old": old, "new": reserve_rate_mantissa}
            )

    # -------- vault primitives --------
    def supply(self, amount: int) -> None:
        """Move ``amount`` of underlying held by the pool into the vault."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        with self._atomic():
            self._supply_to_vault(amount)
            self._record.accounted_balance = self._record.accounted_balance + amount
        self._check_solvency()

    def redeem(self, amount: int) -> int:
        """Pull ``amount`` of principal back from the vault into the pool.

        Raises
        ------
        InsufficientLiquidity
            If the vault cannot release ``amount`` right now.
        """
        if amount < 0:
            raise ValueError("amount must be non-negative")
        with self._atomic():
            actual = self._redeem_from_vault(amount)
            self._record.accounted_balance = max(
                0, self._record.accounted_balance - actual
            )
        self._check_solvency()
        return actual

    def capture_award_balance(self, caller: str) -> int:
        """Withhold the reserve cut from new interest and return the prize.

        Only interest that arrived since the previous capture is charged, so
        a prize that was captured but not awarded is not charged twice.
        """
        self._require_strategy(caller)
        with self._atomic():
            total = self.award_balance()
            captured = min(self._record.captured_award_balance, total)
            fee = self.reserve_fee(total - captured)
            if fee:
                self._record.reserve_total = self._record.reserve_total + fee
            self._record.captured_award_balance = total - fee
        return total - fee

    # -------- participant flows --------
    def deposit_to(self, caller: str, to: str, amount: int, token_address: str) -> None:
        """Take ``amount`` of underlying from ``caller`` and mint ``token`` to ``to``."""
        token = self._controlled_token(token_address)
        self.listener.before_balance_change(self._record.address, token.address)
        if amount <= 0:
            raise ValueError("amount must be positive")
        with self._atomic():
            self._ledger.transfer(self.token, caller, self._record.address, amount)
            self._mint(to, amount, token)
            self.listener.after_deposit_to(self._record.address, to, amount, token.address)
            self._supply_to_vault(amount)
            self._record.accounted_balance = self._record.accounted_balance + amount
            self._emit(
                "Deposited",
                {"operator": caller, "to": to, "token": token.address, "amount": amount},
            )
        self._check_solvency()

    def calculate_early_exit_fee(
        self, from_: str, amount: int, token_address: str
    ) -> tuple[int, int]:
        """Return ``(exit_fee, burned_credit)`` with the pool's fee cap applied."""
        token = self._controlled_token(token_address)
        remaining_fee, burned_credit = self.listener.calculate_instant_withdrawal_fee(
            from_, amount, token.address
        )
        max_fee = multiply_by_mantissa(amount, self._record.max_exit_fee_mantissa)
        return min(remaining_fee, max_fee), burned_credit

    def withdraw_instantly_from(
        self,
        caller: str,
        from_: str,
        amount: int,
        token_address: str,
        maximum_exit_fee: int,
    ) -> int:
        """Withdraw right away, paying any early exit fee not covered by credit.

        The fee stays in the vault and becomes part of the next prize.

        Returns
        -------
        int
            The exit fee that was charged.

        Raises
        ------
        ExitFeeExceeded
            If the fee is larger than ``maximum_exit_fee``.
        InsufficientLiquidity
            If the vault cannot release ``amount`` less the fee.
        """
        token = self._controlled_token(token_address)
        self.listener.before_balance_change(self._record.address, token.address)
        if amount <= 0:
            raise ValueError("amount must be positive")
        if caller != from_:
            raise Unauthorized("only the holder may withdraw their tokens")
        exit_fee, burned_credit = self.calculate_early_exit_fee(
            from_, amount, token.address
        )
        if exit_fee > maximum_exit_fee:
            raise ExitFeeExceeded(
                f"exit fee {exit_fee} exceeds user maximum {maximum_exit_fee}"
            )

        with self._atomic():
            self._burn(from_, amount, token)
            self.listener.after_withdraw_instantly_from(
                self._record.address,
                caller,
                from_,
                amount,
                token.address,
                exit_fee,
                burned_credit,
            )
            amount_less_fee = amount - exit_fee
            redeemed = self._redeem_from_vault(amount_less_fee)
            self._record.accounted_balance = max(
                0, self._record.accounted_balance - amount
            )
            self._ledger.transfer(self.token, self._record.address, from_, redeemed)
            self._emit(
                "InstantWithdrawal",
                {
                    "operator": caller,
                    "from": from_,
                    "token": token.address,
                    "amount": amount,
                    "exit_fee": exit_fee,
                },
            )
        self._check_solvency()
        return exit_fee

    def withdraw_with_timelock_from(
        self, caller: str, from_: str, amount: int, token_address: str
    ) -> int:
        """Withdraw without an exit fee, waiting out a timelock instead.

        The tokens are burned now; the principal stays accounted until the
        prize strategy sweeps the matured timelock.

        Returns
        -------
        int
            UNIX time at which the holder's timelocked funds unlock.

        Raises
        ------
        InsufficientLiquidity
            If the timelock has already matured and the vault cannot pay it
            out now. Nothing is burned or recorded in that case.
        """
        token = self._controlled_token(token_address)
        self.listener.before_balance_change(self._record.address, token.address)
        if amount <= 0:
            raise ValueError("amount must be positive")
        if caller != from_:
            raise Unauthorized("only the holder may withdraw their tokens")
        duration, burned_credit = self.listener.calculate_timelock_duration_and_fee(
            from_, amount, token.address
        )
        duration = min(duration, self._record.max_timelock_duration)
        unlock_timestamp = self._clock.now() + duration

        with self._atomic():
            self._burn(from_, amount, token)
            unlock_timestamp = self.listener.after_withdraw_with_timelock_from(
                self._record.address,
                from_,
                amount,
                token.address,
                unlock_timestamp,
                burned_credit,
            )
            self._emit(
                "TimelockedWithdrawal",
                {
                    "operator": caller,
                    "from": from_,
                    "token": token.address,
                    "amount": amount,
                    "unlock_timestamp": unlock_timestamp,
                },
            )
        return unlock_timestamp

    def transfer(self, caller: str, to: str, amount: int, token_address: str) -> None:
        """Move controlled tokens between holders."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        token = self._controlled_token(token_address)
        with self._atomic():
            self.listener.before_token_transfer(
                self._record.address, caller, to, amount, token.address
            )
            self._ledger.transfer(token, caller, to, amount)

    # -------- strategy-only payouts --------
    def award(self, caller: str, winner: str, amount: int, token_address: str) -> None:
        """Mint ``amount`` of a controlled token to ``winner`` out of interest."""
        self._require_strategy(caller)
        if amount == 0:
            return
        token = self._controlled_token(token_address)
        with self._atomic():
            self._record.captured_award_balance = max(
                0, self._record.captured_award_balance - amount
            )
            self._record.accounted_balance = self._record.accounted_balance + amount
            self._mint(winner, amount, token)
            self._emit(
                "Awarded", {"winner": winner, "token": token.address, "amount": amount}
            )
        self._check_solvency()

    def award_external_erc20(
        self, caller: str, to: str, token_address: str, amount: int
    ) -> None:
        self._require_strategy(caller)
        if amount == 0:
            return
        token = self._ledger.get(token_address)
        with self._atomic():
            self._ledger.transfer(token, self._record.address, to, amount)
            self._emit(
                "AwardedExternalERC20",
                {"winner": to, "token": token_address, "amount": amount},
            )

    def award_external_erc721(
        self, caller: str, to: str, token_address: str, token_ids: Sequence[int]
    ) -> None:
        self._require_strategy(caller)
        if not token_ids:
            return
        token = self._ledger.get(token_address)
        with self._atomic():
            for token_id in token_ids:
                self._ledger.transfer_nonfungible(
                    token, token_id, self._record.address, to
                )
            self._emit(
                "AwardedExternalERC721",
                {"winner": to, "token": token_address, "token_ids": list(token_ids)},
            )

    def release_timelocked_funds(self, caller: str, payouts: dict[str, int]) -> int:
        """Pay matured timelocked principal to each holder in ``payouts``.

        Liquidity for the whole batch is checked before the vault is touched.
        """
        self._require_strategy(caller)
        total = sum(payouts.values())
        if total == 0:
            return 0
        if total > self._vault.available_liquidity():
            raise InsufficientLiquidity(
                f"cannot release {total}; vault liquidity is "
                f"{self._vault.available_liquidity()}"
            )
        with self._atomic():
            self._redeem_from_vault(total)
            self._record.accounted_balance = max(
                0, self._record.accounted_balance - total
            )
            for holder, amount in payouts.items():
                if amount:
                    self._ledger.transfer(
                        self.token, self._record.address, holder, amount
                    )
        self._check_solvency()
        return total

    def withdraw_reserve(self, caller: str, to: str) -> int:
        """Send the withheld reserve to ``to`` and return the amount."""
        self._require_admin(caller)
        amount = self._record.reserve_total
        if amount == 0:
            return 0
        with self._atomic():
            self._redeem_from_vault(amount)
            self._record.reserve_total = 0
            self._ledger.transfer(self.token, self._record.address, to, amount)
            self._emit("ReserveWithdrawn", {"to": to, "amount": amount})
        return amount


__all__ = ["PrizePool", "TokenListener"]
