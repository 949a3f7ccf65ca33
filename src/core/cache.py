from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from src.core.errors import CancellationSignal

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_cache_key(mode: str, scope_signature: str) -> str:
    return f"{mode}|{scope_signature}"


class ScopeCache:
    """Memoizes computed aggregates by scope and coalesces identical requests.

    Built once per process. Values are kept until the process exits; callers
    invalidate by asking for a different key (for example by bumping the
    scope's refresh counter). At most one computation per key runs at a time:
    a request that arrives while the key is in flight waits for that result
    instead of starting a second computation. Failures are never cached.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._in_flight: Dict[str, Future] = {}
        self._lock = Lock()

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                logger.debug("Cache hit for %s", key)
                return self._entries[key]
            pending = self._in_flight.get(key)
            is_owner = pending is None
            if pending is None:
                pending = Future()
                self._in_flight[key] = pending

        if not is_owner:
            logger.debug("Joining in-flight computation for %s", key)
            return pending.result()

        logger.debug("Cache miss for %s", key)
        try:
            value = compute()
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        else:
            with self._lock:
                self._entries[key] = value
            pending.set_result(value)
            return value
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass(frozen=True)
class ScopeTicket:
    key: str
    generation: int


class ScopeSubscription(Generic[T]):
    """Latest-request-wins holder for one consumer view.

    Every request takes a ticket from ``begin``. Only the most recently issued
    ticket may publish a result or an error; anything older is dropped.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._generation = 0
        self.key: Optional[str] = None
        self.result: Optional[T] = None
        self.error: Optional[Exception] = None

    def begin(self, key: str) -> ScopeTicket:
        with self._lock:
            self._generation += 1
            return ScopeTicket(key=key, generation=self._generation)

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1

    def is_current(self, ticket: ScopeTicket) -> bool:
        with self._lock:
            return ticket.generation == self._generation

    def publish(self, ticket: ScopeTicket, result: T) -> bool:
        with self._lock:
            if ticket.generation != self._generation:
                logger.debug("Dropping superseded result for %s", ticket.key)
                return False
            self.key = ticket.key
            self.result = result
            self.error = None
            return True

    def fail(self, ticket: ScopeTicket, error: Exception) -> bool:
        with self._lock:
            if ticket.generation != self._generation:
                logger.debug("Dropping superseded failure for %s: %s", ticket.key, error)
                return False
            self.key = ticket.key
            self.error = error
            return True

    def resolve(self, ticket: ScopeTicket, compute: Callable[[], T]) -> T:
        try:
            value = compute()
        except Exception as exc:
            if not self.fail(ticket, exc):
                raise CancellationSignal(ticket.key, ticket.generation) from exc
            raise
        if not self.publish(ticket, value):
            raise CancellationSignal(ticket.key, ticket.generation)
        return value
