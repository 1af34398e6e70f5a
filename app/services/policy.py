"""Wall-clock rules shared by reservation cutoffs and cancellation deadlines"""

import re
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_hhmm(value) -> bool:
    return isinstance(value, str) and bool(HHMM_RE.match(value))


def parse_hhmm(value: str) -> time:
    """Parse ``HH:MM`` into a time; raises ValueError on bad input"""
    if not is_hhmm(value):
        raise ValueError(f"invalid HH:MM value: {value!r}")
    hours, minutes = (int(part) for part in value.split(":"))
    return time(hour=hours, minute=minutes)


def local_now() -> datetime:
    """Current naive wall-clock time in the canteen timezone"""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def is_before(day: date, hhmm: str, now: Optional[datetime] = None) -> bool:
    """True while ``now`` is at or before ``day`` at ``hhmm``"""
    limit = datetime.combine(day, parse_hhmm(hhmm))
    return (now or local_now()) <= limit
