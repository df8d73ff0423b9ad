"""
Clock source for work-session billing.

Billing is derived from the wall-clock timestamps captured when a session
starts and ends. The one-second ticker shown to the provider is display only.
"""

from datetime import datetime, timedelta, timezone

from getlife.app.core.exceptions import InvalidSettlementInputError


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """
    Whole seconds between two session boundaries.

    Partial seconds are dropped, matching a once-per-second ticker.

    Raises:
        InvalidSettlementInputError: If end precedes start
    """
    delta = as_utc(end) - as_utc(start)
    if delta < timedelta(0):
        raise InvalidSettlementInputError("Session end time precedes its start time")
    return int(delta.total_seconds())


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Manually advanced clock for tests and replays."""

    def __init__(self, moment: datetime):
        self._moment = as_utc(moment)

    def now(self) -> datetime:
        return self._moment

    def advance(self, seconds: int) -> datetime:
        self._moment = self._moment + timedelta(seconds=seconds)
        return self._moment


system_clock = SystemClock()


def get_clock():
    """FastAPI dependency returning the billing clock."""
    return system_clock
