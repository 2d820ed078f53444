"""
Data store interface and the SQLAlchemy-backed implementation.

Everything the services need from the database goes through DataStore: filtered/ordered reads,
insert/update/delete by id, and change subscriptions. Rows cross the interface as plain dicts.
"""
import logging
import operator
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from masjid.core.changes import Channel, ChangeCallback, ChangeEvent, ChangeFeed, ChangeType
from masjid.core.db import Base, session_scope

logger = logging.getLogger(__name__)

_SQL_OPS = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}
FILTER_OPS = tuple(_SQL_OPS)


class StoreError(Exception):
    """A data store call failed."""


class NotFoundError(StoreError):
    """No row matched the requested id."""


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


class DataStore(ABC):
    """Black-box relational store with change notifications."""

    # False when subscribe_changes only sees this client's own writes; views then poll
    supports_push = True

    @abstractmethod
    def query(
        self,
        table: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[Sequence[OrderBy]] = None,
    ) -> List[Dict[str, Any]]:
        """Return rows matching all filters, in order."""

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> str:
        """Insert one row and return its id."""

    @abstractmethod
    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> None:
        """Apply patch to the row with id. NotFoundError if it does not exist."""

    @abstractmethod
    def delete(self, table: str, row_id: str) -> None:
        """Delete the row with id. NotFoundError if it does not exist."""

    @abstractmethod
    def subscribe_changes(self, table: str, callback: ChangeCallback, row_id: Optional[str] = None) -> Channel:
        """Open a channel receiving ChangeEvents for table (or one row of it)."""

    @abstractmethod
    def unsubscribe(self, channel: Channel) -> None:
        """Close a channel opened by subscribe_changes."""

    def get(self, table: str, row_id: str) -> Dict[str, Any]:
        rows = self.query(table, [eq("id", row_id)])
        if not rows:
            raise NotFoundError(f"No row {row_id} in {table}")
        return rows[0]


class SqlDataStore(DataStore):
    """DataStore over SQLAlchemy Core using the tables registered on Base; publishes changes in-process."""

    def __init__(self, session_factory: sessionmaker, feed: Optional[ChangeFeed] = None):
        self.session_factory = session_factory
        self.feed = feed or ChangeFeed()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table: {name}")
        return table

    def _where(self, table: Table, filters: Optional[Sequence[Filter]]) -> list:
        clauses = []
        for f in filters or []:
            if f.column not in table.c:
                raise StoreError(f"Unknown column {f.column} on {table.name}")
            clauses.append(_SQL_OPS[f.op](table.c[f.column], f.value))
        return clauses

    def _fetch_row(self, session, table: Table, row_id: str) -> Optional[Dict[str, Any]]:
        row = session.execute(select(table).where(table.c.id == row_id)).first()
        return dict(row._mapping) if row else None

    def query(self, table, filters=None, order_by=None):
        tbl = self._table(table)
        stmt = select(tbl).where(*self._where(tbl, filters))
        for order in order_by or []:
            if order.column not in tbl.c:
                raise StoreError(f"Unknown order column {order.column} on {tbl.name}")
            col = tbl.c[order.column]
            stmt = stmt.order_by(col.desc() if order.descending else col.asc())
        try:
            with session_scope(self.session_factory) as session:
                return [dict(r._mapping) for r in session.execute(stmt).all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Query on {table} failed: {e}") from e

    def insert(self, table, row):
        tbl = self._table(table)
        values = dict(row)
        values.setdefault("id", str(uuid.uuid4()))
        try:
            with session_scope(self.session_factory) as session:
                session.execute(insert(tbl).values(**values))
                new = self._fetch_row(session, tbl, values["id"])
        except SQLAlchemyError as e:
            raise StoreError(f"Insert into {table} failed: {e}") from e
        self.logger.info(f"Inserted {values['id']} into {table}")
        self.feed.publish(ChangeEvent(ChangeType.INSERT, table, old=None, new=new))
        return values["id"]

    def update(self, table, row_id, patch):
        tbl = self._table(table)
        try:
            with session_scope(self.session_factory) as session:
                old = self._fetch_row(session, tbl, row_id)
                if old is None:
                    raise NotFoundError(f"No row {row_id} in {table}")
                session.execute(update(tbl).where(tbl.c.id == row_id).values(**patch))
                new = self._fetch_row(session, tbl, row_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Update of {row_id} in {table} failed: {e}") from e
        self.logger.info(f"Updated {row_id} in {table}: {sorted(patch)}")
        self.feed.publish(ChangeEvent(ChangeType.UPDATE, table, old=old, new=new))

    def delete(self, table, row_id):
        tbl = self._table(table)
        try:
            with session_scope(self.session_factory) as session:
                old = self._fetch_row(session, tbl, row_id)
                if old is None:
                    raise NotFoundError(f"No row {row_id} in {table}")
                session.execute(delete(tbl).where(tbl.c.id == row_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Delete of {row_id} from {table} failed: {e}") from e
        self.logger.info(f"Deleted {row_id} from {table}")
        self.feed.publish(ChangeEvent(ChangeType.DELETE, table, old=old, new=None))

    def subscribe_changes(self, table, callback, row_id=None):
        self._table(table)
        return self.feed.subscribe(table, callback, row_id=row_id)

    def unsubscribe(self, channel):
        self.feed.unsubscribe(channel)
