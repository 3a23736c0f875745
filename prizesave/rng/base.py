"""Randomness services and the registry the strategy resolves them from."""

from __future__ import annotations

import itertools
import logging
import secrets
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class RNGService:
    """Asynchronous request/poll randomness source."""

    def request_random_number(self) -> str:
        """Start a request and return its handle."""
        raise NotImplementedError

    def is_request_complete(self, request_id: str) -> bool:
        raise NotImplementedError

    def random_number(self, request_id: str) -> int:
        """Return the random value of a completed request."""
        raise NotImplementedError


class LocalRNG(RNGService):
    """In-process randomness for development and tests.

    Parameters
    ----------
    auto_fulfil : bool, default: True
        Complete each request as soon as it is made.  When ``False``, requests
        stay pending until :meth:`fulfil` is called, which mimics an oracle
        that answers some time later.
    generator : Optional[Callable[[], int]], default: None
        Source of random values.  Defaults to 256 bits from :mod:`secrets`.
    """

    def __init__(
        self,
        *,
        auto_fulfil: bool = True,
        generator: Optional[Callable[[], int]] = None,
    ) -> None:
        self._auto_fulfil = auto_fulfil
        self._generator = generator or (lambda: secrets.randbits(256))
        self._counter = itertools.count(1)
        self._pending: set[str] = set()
        self._results: Dict[str, int] = {}

    def request_random_number(self) -> str:
        request_id = str(next(self._counter))
        if self._auto_fulfil:
            self._results[request_id] = self._generator()
        else:
            self._pending.add(request_id)
        logger.debug("random number requested (request_id=%s)", request_id)
        return request_id

    def fulfil(self, request_id: str, value: Optional[int] = None) -> None:
        """Complete a pending request, with ``value`` or a generated number."""
        if request_id not in self._pending:
            raise KeyError(f"No pending request '{request_id}'")
        self._pending.discard(request_id)
        self._results[request_id] = self._generator() if value is None else value

    def is_request_complete(self, request_id: str) -> bool:
        return request_id in self._results

    def random_number(self, request_id: str) -> int:
        try:
            return self._results[request_id]
        except KeyError as exc:
            raise ValueError(f"Request '{request_id}' is not complete") from exc


class RNGRegistry:
    """Mutable registry mapping service keys to randomness services."""

    def __init__(self) -> None:
        self._services: Dict[str, RNGService] = {}

    def register(self, key: str, service: RNGService, *, replace: bool = False) -> None:
        """Register ``service`` under ``key``.

        Parameters
        ----------
        key : str
            Name stored on the strategy record.
        service : RNGService
            Service to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and key in self._services:
            raise ValueError(f"RNG service '{key}' is already registered")
        self._services[key] = service

    def get(self, key: str) -> RNGService:
        """Return the service registered under ``key``."""
        try:
            return self._services[key]
        except KeyError as exc:
            raise KeyError(f"Unknown RNG service '{key}'") from exc

    def __contains__(self, key: object) -> bool:
        return key in self._services

    def available_services(self) -> Dict[str, RNGService]:
        """Return a copy of the registered services keyed by name."""
        return dict(self._services)


__all__ = ["RNGService", "LocalRNG", "RNGRegistry"]
