"""
Shared helpers for admin forms: field pattern checks, local-to-UTC conversion, and WriteError.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar
from zoneinfo import ZoneInfo

from masjid.core.store import NotFoundError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


class WriteError(Exception):
    """The data store rejected an admin write. str(err) is the message shown to the user."""


def is_valid_date(value: str) -> bool:
    if not _DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_time(value: str) -> bool:
    if not _TIME_RE.match(value):
        return False
    hour, minute = (int(p) for p in value.split(":"))
    return hour < 24 and minute < 60


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def local_to_utc(date_str: str, time_str: str, tz_name: Optional[str] = None) -> datetime:
    """Combine "YYYY-MM-DD" and "HH:MM" in tz_name (system local when None) into naive UTC."""
    local = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
    if tz_name:
        aware = local.replace(tzinfo=ZoneInfo(tz_name))
    else:
        aware = local.astimezone()
    return aware.astimezone(timezone.utc).replace(tzinfo=None)


def utc_to_local(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Naive UTC to naive local wall time in tz_name (system local when None)."""
    aware = value.replace(tzinfo=timezone.utc)
    local = aware.astimezone(ZoneInfo(tz_name)) if tz_name else aware.astimezone()
    return local.replace(tzinfo=None)


def perform_write(action: Callable[[], T], failure_message: str) -> T:
    """Run a store write; store failures become WriteError carrying a user-facing message."""
    try:
        return action()
    except NotFoundError:
        raise
    except StoreError as e:
        logger.error(f"{failure_message}: {e}")
        raise WriteError(str(e) or failure_message) from e
