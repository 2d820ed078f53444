"""
DataStore for a hosted Postgres exposed through PostgREST (e.g. Supabase), using requests.

Reads map to GET /rest/v1/<table>?<col>=<op>.<value>&order=<col>.<dir>; writes to POST/PATCH/DELETE
filtered on id. The change feed carries writes made through this client only, so supports_push is
False and components poll with a repeating load() to see writes made by other clients.
"""
import logging
import uuid
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence

import requests

from masjid.core.changes import ChangeEvent, ChangeFeed, ChangeType
from masjid.core.store import DataStore, Filter, NotFoundError, OrderBy, StoreError


def _encode(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _encode_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.isoformat() if isinstance(v, (datetime, date, time)) else v) for k, v in row.items()}


class RestDataStore(DataStore):
    supports_push = False

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        if not base_url or base_url.startswith("$"):
            raise ValueError("REST store requires rest.url (e.g. SUPABASE_URL)")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.feed = feed or ChangeFeed()
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })
        self.logger = logging.getLogger(self.__class__.__name__)

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, self._url(table), timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.HTTPError as e:
            message = e.response.text if e.response is not None else str(e)
            raise StoreError(f"{method} {table} failed: {message}") from e
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

    def _params(self, filters: Optional[Sequence[Filter]], order_by: Optional[Sequence[OrderBy]]) -> List[tuple]:
        params = [("select", "*")]
        for f in filters or []:
            params.append((f.column, f"{f.op}.{_encode(f.value)}"))
        if order_by:
            params.append(("order", ",".join(
                f"{o.column}.{'desc' if o.descending else 'asc'}" for o in order_by
            )))
        return params

    def query(self, table, filters=None, order_by=None):
        response = self._request("GET", table, params=self._params(filters, order_by))
        return list(response.json())

    def _get_row(self, table: str, row_id: str) -> Dict[str, Any]:
        rows = self._request("GET", table, params=[("select", "*"), ("id", f"eq.{row_id}")]).json()
        if not rows:
            raise NotFoundError(f"No row {row_id} in {table}")
        return rows[0]

    def insert(self, table, row):
        values = _encode_row(row)
        values.setdefault("id", str(uuid.uuid4()))
        response = self._request(
            "POST", table, json=values, headers={"Prefer": "return=representation"}
        )
        rows = response.json() or [values]
        new = rows[0]
        self.logger.info(f"Inserted {new.get('id')} into {table}")
        self.feed.publish(ChangeEvent(ChangeType.INSERT, table, old=None, new=new))
        return str(new.get("id", values["id"]))

    def update(self, table, row_id, patch):
        old = self._get_row(table, row_id)
        response = self._request(
            "PATCH",
            table,
            params=[("id", f"eq.{row_id}")],
            json=_encode_row(patch),
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise NotFoundError(f"No row {row_id} in {table}")
        self.logger.info(f"Updated {row_id} in {table}: {sorted(patch)}")
        self.feed.publish(ChangeEvent(ChangeType.UPDATE, table, old=old, new=rows[0]))

    def delete(self, table, row_id):
        old = self._get_row(table, row_id)
        self._request("DELETE", table, params=[("id", f"eq.{row_id}")])
        self.logger.info(f"Deleted {row_id} from {table}")
        self.feed.publish(ChangeEvent(ChangeType.DELETE, table, old=old, new=None))

    def subscribe_changes(self, table, callback, row_id=None):
        return self.feed.subscribe(table, callback, row_id=row_id)

    def unsubscribe(self, channel):
        self.feed.unsubscribe(channel)
