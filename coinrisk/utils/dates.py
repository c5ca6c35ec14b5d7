"""Day-count helpers shared by the pricer and the solver."""
from __future__ import annotations

import math
from datetime import date, datetime, timezone


def _utc_date(ts: datetime) -> date:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def day_diff(t1: datetime, t2: datetime) -> int:
    """Whole days from ``t1`` to ``t2``.

    Both timestamps are truncated to their UTC calendar date before
    differencing, so any two times on the same UTC day give 0. Naive
    datetimes are taken to already be in UTC. Negative when ``t2`` is
    earlier than ``t1``.
    """
    d1 = datetime.combine(_utc_date(t1), datetime.min.time())
    d2 = datetime.combine(_utc_date(t2), datetime.min.time())
    hours = (d2 - d1).total_seconds() // 3600
    return _round_half_away(hours / 24.0)


def expiry_days(expiry: datetime, asof: datetime) -> int:
    return day_diff(asof, expiry)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
