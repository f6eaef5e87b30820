"""Per-user fan-out of entry snapshots to subscribers."""

import asyncio
import inspect
import itertools
import logging
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Protocol

from nutrition_log.domain.entries import LogEntry
from nutrition_log.errors import PersistenceError

_logger = logging.getLogger(__name__)

Snapshot = tuple[LogEntry, ...]
SnapshotCallback = Callable[[Snapshot], Awaitable[None] | None]


class SnapshotSource(Protocol):
    """Read access to a user's canonical entry list."""

    def list_entries(self, user_id: str) -> list[LogEntry]:
        """Return the persisted entries for a user in insertion order."""


@dataclass
class Subscription:
    """Handle returned by subscribe; removes one registration."""

    bus: "NotificationBus"
    user_id: str
    token: int

    @property
    def active(self) -> bool:
        """Return True while the callback is still registered."""
        return self.token in self.bus._subscribers.get(self.user_id, {})

    def unsubscribe(self) -> None:
        """Remove the registration. Safe to call more than once."""
        self.bus._remove(self.user_id, self.token)


@dataclass
class _Delivery:
    snapshot: Snapshot
    tokens: tuple[int, ...]


@dataclass
class NotificationBus:
    """Observer registry that pushes freshly re-read snapshots.

    Every notification re-reads the full entry list from storage instead of
    forwarding deltas, so subscribers always converge on what was durably
    written, including after a partially failed batch.

    Snapshots are read under a per-user lock and queued in acceptance order.
    The lock is released before callbacks run, so a callback may issue another
    mutation for the same user; its snapshot is delivered once the current
    fan-out finishes.
    """

    source: SnapshotSource
    _subscribers: dict[str, dict[int, SnapshotCallback]] = field(
        default_factory=dict
    )
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _lock_users: dict[str, int] = field(default_factory=dict)
    _pending: dict[str, deque[_Delivery]] = field(default_factory=dict)
    _draining: set[str] = field(default_factory=set)
    _tokens: itertools.count = field(default_factory=itertools.count)

    async def subscribe(
        self, user_id: str, callback: SnapshotCallback
    ) -> Subscription:
        """Register a callback and push the current snapshot to it."""
        async with self._locked(user_id):
            snapshot = self._read(user_id)
            token = next(self._tokens)
            self._subscribers.setdefault(user_id, {})[token] = callback
            self._enqueue(user_id, snapshot, (token,))
        await self._drain(user_id)
        return Subscription(bus=self, user_id=user_id, token=token)

    @asynccontextmanager
    async def mutation(self, user_id: str) -> AsyncIterator[None]:
        """Serialize a mutation for a user and publish afterwards.

        The snapshot is only published when the body completes without an
        exception. A failed re-read is logged; the mutation itself stands.
        """
        async with self._locked(user_id):
            yield
            try:
                self._stage(user_id)
            except PersistenceError:
                _logger.exception("Snapshot re-read failed: user_id=%s", user_id)
        await self._drain(user_id)

    async def refresh(self, user_id: str) -> None:
        """Re-read a user's entries and notify their subscribers."""
        async with self._locked(user_id):
            self._stage(user_id)
        await self._drain(user_id)

    async def refresh_all(self) -> None:
        """Refresh every user that currently has subscribers."""
        for user_id in list(self._subscribers):
            await self.refresh(user_id)

    def subscriber_count(self, user_id: str) -> int:
        """Return the number of active callbacks for a user."""
        return len(self._subscribers.get(user_id, {}))

    @asynccontextmanager
    async def _locked(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                # Nobody holds or waits on the lock any more.
                del self._lock_users[user_id]
                del self._locks[user_id]

    def _read(self, user_id: str) -> Snapshot:
        return tuple(self.source.list_entries(user_id))

    def _stage(self, user_id: str) -> None:
        registered = self._subscribers.get(user_id)
        if not registered:
            return
        self._enqueue(user_id, self._read(user_id), tuple(registered))

    def _enqueue(
        self, user_id: str, snapshot: Snapshot, tokens: tuple[int, ...]
    ) -> None:
        self._pending.setdefault(user_id, deque()).append(
            _Delivery(snapshot=snapshot, tokens=tokens)
        )

    async def _drain(self, user_id: str) -> None:
        if user_id in self._draining:
            return
        self._draining.add(user_id)
        try:
            pending = self._pending.get(user_id)
            while pending:
                delivery = pending.popleft()
                for token in delivery.tokens:
                    callback = self._subscribers.get(user_id, {}).get(token)
                    if callback is None:
                        continue
                    await self._deliver(user_id, token, callback, delivery.snapshot)
        finally:
            self._draining.discard(user_id)
            if not self._pending.get(user_id):
                self._pending.pop(user_id, None)

    async def _deliver(
        self,
        user_id: str,
        token: int,
        callback: SnapshotCallback,
        snapshot: Snapshot,
    ) -> None:
        try:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            _logger.exception(
                "Subscriber callback failed: user_id=%s token=%s", user_id, token
            )

    def _remove(self, user_id: str, token: int) -> None:
        registered = self._subscribers.get(user_id)
        if registered is None:
            return
        registered.pop(token, None)
        if not registered:
            self._subscribers.pop(user_id, None)
