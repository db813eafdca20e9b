# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Timezone utilities for boarding-area invalidation times
"""
from datetime import datetime, timedelta
import logging
import pytz
from typing import Optional

logger = logging.getLogger(__name__)


def get_utc_time() -> datetime:
    """Get current time in UTC"""
    return datetime.now(pytz.UTC)


def get_zone(tz_name: Optional[str]):
    """Resolve a time zone name, falling back to UTC"""
    if not tz_name:
        return pytz.UTC
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown time zone '{tz_name}', using UTC")
        return pytz.UTC


def start_of_local_day(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Midnight at the start of the current day in the given zone, as UTC"""
    zone = get_zone(tz_name)
    now = now or get_utc_time()
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)

    local_now = now.astimezone(zone)
    midnight = zone.localize(datetime(local_now.year, local_now.month, local_now.day))
    return midnight.astimezone(pytz.UTC)


def end_of_local_day(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Midnight at the end of the current day in the given zone, as UTC"""
    zone = get_zone(tz_name)
    start = start_of_local_day(tz_name, now).astimezone(zone)
    # Re-localize so DST transitions land on the real local midnight
    next_day = (start.replace(tzinfo=None) + timedelta(days=1))
    return zone.localize(next_day).astimezone(pytz.UTC)


def to_iso_utc(dt: datetime) -> str:
    """Format a datetime the way the registry API expects it"""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC).strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the registry into an aware UTC datetime"""
    if not iso_string:
        return None

    if iso_string.endswith('Z'):
        iso_string = iso_string[:-1] + '+00:00'

    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)
