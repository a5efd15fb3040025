"""
Operation guards and refresh progress.

The only state shared between worker threads:
  - OperationGuard: one non-blocking lock per operation type; a second
    caller is rejected immediately instead of queueing behind the first.
  - ProgressTracker: lock-guarded counters; readers get an immutable copy.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional

from ..errors import OperationInProgress

OP_REFRESH = "refresh"
OP_ADD_STORE = "add_store"


class OperationGuard:
    """
    Rejects overlapping invocations of the same operation type.

    Usage:
        guard = OperationGuard()
        with guard.hold("refresh"):
            ...
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, operation: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(operation, threading.Lock())

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        """
        Raises:
            OperationInProgress: If the operation is already running
        """
        lock = self._lock_for(operation)
        if not lock.acquire(blocking=False):
            raise OperationInProgress(f"{operation} is already in progress")
        try:
            yield
        finally:
            lock.release()

    def is_running(self, operation: str) -> bool:
        return self._lock_for(operation).locked()


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time copy of refresh progress."""
    is_running: bool = False
    current_store: str = ""
    current_page: int = 0
    total_pages: int = 0
    store_index: int = 0
    total_stores: int = 0
    products_found: int = 0
    message: str = ""
    started_at: Optional[float] = None

    @property
    def elapsed_seconds(self) -> int:
        if self.started_at is None:
            return 0
        return round(time.time() - self.started_at)


class ProgressTracker:
    """Thread-safe refresh progress."""

    def __init__(self):
        self._lock = threading.Lock()
        self._state = ProgressSnapshot()

    def start(self, total_stores: int, message: str = "Starting refresh") -> None:
        with self._lock:
            self._state = ProgressSnapshot(
                is_running=True,
                total_stores=total_stores,
                message=message,
                started_at=time.time(),
            )

    def update(self, **changes) -> None:
        """Set fields by name (current_store, current_page, message, ...)."""
        with self._lock:
            self._state = replace(self._state, **changes)

    def store_started(self, store_name: str) -> None:
        with self._lock:
            self._state = replace(
                self._state,
                current_store=store_name,
                current_page=0,
                total_pages=0,
                message=f"Fetching {store_name}",
            )

    def page_started(self, store_name: str, page: int, total_pages: int) -> None:
        with self._lock:
            self._state = replace(
                self._state,
                current_store=store_name,
                current_page=page,
                total_pages=total_pages,
                message=f"Fetching {store_name} page {page}/{total_pages}",
            )

    def store_finished(self, store_name: str, listings_found: int) -> None:
        with self._lock:
            self._state = replace(
                self._state,
                store_index=self._state.store_index + 1,
                products_found=self._state.products_found + listings_found,
                message=f"{store_name}: {listings_found} listings",
            )

    def finish(self, message: str = "Done") -> None:
        with self._lock:
            self._state = replace(self._state, is_running=False, current_store="", message=message)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._state
