from datetime import datetime
from typing import Protocol

from thinkboard.utils import now


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return now()
