"""
Per-tournament reader/writer locking.

Seating writes for one tournament run one at a time; layout reads may run
together but never while a write for the same tournament is in flight.
Different tournaments never block each other.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _ReadWriteLock:
    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class TournamentLocks:
    """Registry of one reader/writer lock per tournament id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, _ReadWriteLock] = {}

    def _lock_for(self, tournament_id: str) -> _ReadWriteLock:
        with self._guard:
            lock = self._locks.get(tournament_id)
            if lock is None:
                lock = _ReadWriteLock()
                self._locks[tournament_id] = lock
            return lock

    @contextmanager
    def exclusive(self, tournament_id: str) -> Iterator[None]:
        lock = self._lock_for(tournament_id)
        lock.acquire_write()
        try:
            yield
        finally:
            lock.release_write()

    @contextmanager
    def shared(self, tournament_id: str) -> Iterator[None]:
        lock = self._lock_for(tournament_id)
        lock.acquire_read()
        try:
            yield
        finally:
            lock.release_read()


# Process-wide registry used by the services unless a caller passes its own.
tournament_locks = TournamentLocks()
