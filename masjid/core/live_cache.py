"""
Live data cache: the last successfully fetched rows for one view, kept fresh push-then-pull.

A change notification accepted by the relevance predicate triggers a full re-fetch; the fetched
result replaces the cached value wholesale. Failed fetches keep whatever was cached and record a
user-facing message instead of raising.

Overlapping loads are sequenced: every load() takes the next sequence number when it starts, and a
completion older than the result already applied is discarded, so the most recently started fetch
that has completed is authoritative.
"""
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from masjid.core.changes import Channel, ChangePredicate, RefreshSubject, any_change
from masjid.core.store import DataStore, NotFoundError

T = TypeVar("T")

DEFAULT_ERROR_MESSAGE = "Unable to load data. Please try again."


class CacheState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class LiveData(Generic[T]):
    """Shared state machine for LiveCollection and LiveRecord."""

    def __init__(
        self,
        store: DataStore,
        table: str,
        fetch: Callable[[DataStore], Any],
        relevant: Optional[ChangePredicate] = None,
        row_id: Optional[str] = None,
        error_message: str = DEFAULT_ERROR_MESSAGE,
        clock: Optional[Callable[[], datetime]] = None,
        name: Optional[str] = None,
    ):
        self.store = store
        self.table = table
        self.row_id = row_id
        self.error_message = error_message
        self.name = name or table
        self._fetch = fetch
        # Single-row views treat every change to their row as relevant
        self._relevant = relevant or any_change
        self._clock = clock or datetime.now
        self.logger = logging.getLogger(f"{self.__class__.__name__}.{self.name}")

        self._lock = threading.Lock()
        self._state = CacheState.IDLE
        self._error: Optional[str] = None
        self._last_updated: Optional[datetime] = None
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._channel: Optional[Channel] = None
        self._closed = False
        self._listeners: List[Callable[["LiveData"], None]] = []

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._last_updated

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def is_subscribed(self) -> bool:
        return self._channel is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, callback: Callable[["LiveData"], None]) -> None:
        """Register callback(live) to run after every applied result."""
        self._listeners.append(callback)

    def load(self) -> bool:
        """Fetch and apply. Returns True if this fetch's result (data or error) was applied."""
        with self._lock:
            if self._closed:
                return False
            self._issued += 1
            seq = self._issued
            self._in_flight += 1
            self._state = CacheState.LOADING
        try:
            result = self._fetch(self.store)
        except Exception as e:
            self.logger.error(f"Load #{seq} failed: {e}", exc_info=True)
            applied = self._complete(seq, failure=e)
        else:
            applied = self._complete(seq, result=result)
        if applied:
            self._notify_listeners()
        return applied

    refresh = load

    def _complete(self, seq: int, result: Any = None, failure: Optional[Exception] = None) -> bool:
        with self._lock:
            self._in_flight -= 1
            if self._closed:
                self.logger.debug(f"Load #{seq} finished after close; dropped")
                return False
            if seq < self._applied:
                self.logger.debug(f"Load #{seq} superseded by #{self._applied}; dropped")
                return False
            self._applied = seq
            if failure is None:
                self._store_result(result)
                self._state = CacheState.READY
                self._error = None
                self._last_updated = self._clock()
            else:
                self._error = self._store_failure(failure)
                self._state = CacheState.ERROR
            return True

    def _store_result(self, result: Any) -> None:
        raise NotImplementedError

    def _store_failure(self, failure: Exception) -> str:
        return self.error_message

    def _notify_listeners(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                self.logger.error(f"Error in listener for {self.name}: {e}", exc_info=True)

    def subscribe(self) -> None:
        """Open the standing change channel; relevant notifications trigger load()."""
        with self._lock:
            if self._closed or self._channel is not None:
                return
            subject = RefreshSubject(self._relevant, self.load, name=self.name)
            self._channel = self.store.subscribe_changes(self.table, subject.notify, row_id=self.row_id)
        self.logger.debug(f"Subscribed to {self.table} changes")

    def close(self) -> None:
        """Release the channel; fetches still in flight are not applied."""
        with self._lock:
            self._closed = True
            channel, self._channel = self._channel, None
        if channel is not None:
            try:
                self.store.unsubscribe(channel)
            except Exception as e:
                self.logger.error(f"Error closing channel for {self.name}: {e}")
        self.logger.debug(f"Closed {self.name}")


class LiveCollection(LiveData[T]):
    """Cached list of visible rows for one collection."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._items: List[T] = []

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def _store_result(self, result: Any) -> None:
        self._items = list(result or [])


class LiveRecord(LiveData[T]):
    """Cached single row (detail view). Not-found clears the row; other failures keep it."""

    def __init__(self, *args, not_found_message: str = "This item is no longer available.", **kwargs):
        super().__init__(*args, **kwargs)
        self.not_found_message = not_found_message
        self._item: Optional[T] = None
        self._not_found = False

    @property
    def item(self) -> Optional[T]:
        return self._item

    @property
    def not_found(self) -> bool:
        return self._not_found

    def _store_result(self, result: Any) -> None:
        self._item = result
        self._not_found = False

    def _store_failure(self, failure: Exception) -> str:
        if isinstance(failure, NotFoundError):
            self._item = None
            self._not_found = True
            return self.not_found_message
        self._not_found = False
        return self.error_message
