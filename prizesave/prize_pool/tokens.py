"""Minimal token ledger backing controlled, fungible and non-fungible tokens."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import InsufficientBalance, UnknownToken
from ..models.token import NonFungibleHolding, Token, TokenBalance

logger = logging.getLogger(__name__)


class TokenLedger:
    """Balance bookkeeping for every token the system knows about.

    The ledger does not enforce who may mint or burn; the pool checks that
    before touching a controlled token and runs the transfer hooks itself.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def register(
        self,
        address: str,
        kind: str,
        *,
        symbol: Optional[str] = None,
        controller: Optional[str] = None,
    ) -> Token:
        """Create a token record. Fails if ``address`` is already taken."""

        if Token.get_by_address(self._session, address) is not None:
            raise ValueError(f"Token '{address}' is already registered")
        token = Token(address=address, kind=kind, symbol=symbol, controller=controller)
        self._session.add(token)
        self._session.flush()
        return token

    def get(self, address: str) -> Token:
        token = Token.get_by_address(self._session, address)
        if token is None:
            raise UnknownToken(f"Unknown token '{address}'")
        return token

    # -------- fungible --------
    def _balance_row(self, token: Token, holder: str) -> Optional[TokenBalance]:
        return self._session.scalar(
            select(TokenBalance).where(
                TokenBalance.token_id == token.id, TokenBalance.holder == holder
            )
        )

    def balance_of(self, token: Token, holder: str) -> int:
        row = self._balance_row(token, holder)
        return 0 if row is None else row.balance

    def total_supply(self, token: Token) -> int:
        return token.total_supply

    def _require_fungible(self, token: Token) -> None:
        if not token.is_fungible:
            raise UnknownToken(f"Token '{token.address}' is not fungible")

    def _credit(self, token: Token, holder: str, amount: int) -> None:
        row = self._balance_row(token, holder)
        if row is None:
            row = TokenBalance(token_id=token.id, holder=holder, balance=0)
            self._session.add(row)
        row.balance = row.balance + amount

    def _debit(self, token: Token, holder: str, amount: int) -> None:
        row = self._balance_row(token, holder)
        current = 0 if row is None else row.balance
        if current < amount:
            raise InsufficientBalance(
                f"{holder} holds {current} of {token.address}, needs {amount}"
            )
        if row is not None:
            row.balance = current - amount

    def mint(self, token: Token, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._require_fungible(token)
        self._credit(token, to, amount)
        token.total_supply = token.total_supply + amount
        self._session.flush()

    def burn(self, token: Token, from_: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._require_fungible(token)
        self._debit(token, from_, amount)
        token.total_supply = token.total_supply - amount
        self._session.flush()

    def transfer(self, token: Token, from_: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._require_fungible(token)
        self._debit(token, from_, amount)
        self._credit(token, to, amount)
        self._session.flush()
        logger.debug("transfer %s %s: %s -> %s", amount, token.address, from_, to)

    # -------- non-fungible --------
    def _holding(self, token: Token, token_number: int) -> Optional[NonFungibleHolding]:
        return self._session.scalar(
            select(NonFungibleHolding).where(
                NonFungibleHolding.token_id == token.id,
                NonFungibleHolding.token_number == token_number,
            )
        )

    def owner_of(self, token: Token, token_number: int) -> Optional[str]:
        holding = self._holding(token, token_number)
        return None if holding is None else holding.owner

    def mint_nonfungible(self, token: Token, token_number: int, owner: str) -> None:
        if token.is_fungible:
            raise UnknownToken(f"Token '{token.address}' is fungible")
        if self._holding(token, token_number) is not None:
            raise ValueError(f"{token.address} #{token_number} already exists")
        self._session.add(
            NonFungibleHolding(token_id=token.id, token_number=token_number, owner=owner)
        )
        self._session.flush()

    def transfer_nonfungible(
        self, token: Token, token_number: int, from_: str, to: str
    ) -> None:
        holding = self._holding(token, token_number)
        if holding is None or holding.owner != from_:
            raise InsufficientBalance(
                f"{from_} does not own {token.address} #{token_number}"
            )
        holding.owner = to
        self._session.flush()


__all__ = ["TokenLedger"]
