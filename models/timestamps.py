"""Clock helpers. Timestamps are ISO8601 strings in UTC throughout the models."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], str]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
