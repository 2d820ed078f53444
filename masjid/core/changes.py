"""
Change notifications: events, per-table channels, and the refresh-on-notify subject.

A store publishes a ChangeEvent after every committed write. Listeners subscribe to a table
(optionally a single row id) and receive events through a Channel handle they later unsubscribe.
"""
import itertools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """One insert/update/delete on a table. old is None for inserts, new is None for deletes."""

    type: ChangeType
    table: str
    old: Optional[Dict[str, Any]] = None
    new: Optional[Dict[str, Any]] = None

    @property
    def row_id(self) -> Optional[str]:
        for row in (self.new, self.old):
            if row and row.get("id") is not None:
                return str(row["id"])
        return None


ChangeCallback = Callable[[ChangeEvent], None]
ChangePredicate = Callable[[ChangeEvent], bool]


@dataclass(eq=False)
class Channel:
    """Handle returned by subscribe(); pass it back to unsubscribe()."""

    name: str
    table: str
    callback: ChangeCallback
    row_id: Optional[str] = None
    active: bool = field(default=True)

    def matches(self, event: ChangeEvent) -> bool:
        if not self.active or event.table != self.table:
            return False
        if self.row_id is None:
            return True
        return event.row_id == self.row_id


class ChangeFeed:
    """Registry of open channels. publish() fans an event out to every matching channel."""

    def __init__(self):
        self._channels: List[Channel] = []
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, table: str, callback: ChangeCallback, row_id: Optional[str] = None) -> Channel:
        suffix = f"_{row_id}" if row_id is not None else ""
        channel = Channel(
            name=f"{table}{suffix}_changes_{next(self._ids)}",
            table=table,
            callback=callback,
            row_id=str(row_id) if row_id is not None else None,
        )
        with self._lock:
            self._channels.append(channel)
        self.logger.debug(f"Opened channel {channel.name}")
        return channel

    def unsubscribe(self, channel: Channel) -> None:
        with self._lock:
            channel.active = False
            if channel in self._channels:
                self._channels.remove(channel)
        self.logger.debug(f"Closed channel {channel.name}")

    @property
    def channel_count(self) -> int:
        with self._lock:
            return len(self._channels)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [c for c in self._channels if c.matches(event)]
        for channel in targets:
            try:
                channel.callback(event)
            except Exception as e:
                self.logger.error(f"Error in change callback for {channel.name}: {e}", exc_info=True)


def any_change(event: ChangeEvent) -> bool:
    return True


def visible_row_changed(flag: str) -> ChangePredicate:
    """Relevant when a row is deleted, or the row was or becomes visible (flag true before or after)."""

    def predicate(event: ChangeEvent) -> bool:
        if event.type is ChangeType.DELETE:
            return True
        return bool((event.new or {}).get(flag)) or bool((event.old or {}).get(flag))

    return predicate


class RefreshSubject:
    """Calls refresh() for every notification the relevance predicate accepts."""

    def __init__(self, relevant: ChangePredicate, refresh: Callable[[], Any], name: str = ""):
        self.relevant = relevant
        self.refresh = refresh
        self.name = name
        self.logger = logging.getLogger(self.__class__.__name__)

    def notify(self, event: ChangeEvent) -> None:
        if not self.relevant(event):
            self.logger.debug(f"{self.name}: ignoring {event.type.value} on {event.table} ({event.row_id})")
            return
        self.logger.debug(f"{self.name}: {event.type.value} on {event.table} ({event.row_id}), refreshing")
        self.refresh()
