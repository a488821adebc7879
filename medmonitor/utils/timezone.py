"""
Timezone utilities for the medicine monitor
All schedules are compared in one reference civil timezone (Asia/Manila by default)
Database stores naive timestamps that are already expressed in that timezone
"""
import os
from collections import namedtuple
from datetime import datetime

import pytz

# Reference timezone, overridable through the TIMEZONE environment variable
LOCAL_TZ = pytz.timezone(os.environ.get('TIMEZONE', 'Asia/Manila'))

CivilMinute = namedtuple('CivilMinute', ['year', 'month', 'day', 'hour', 'minute'])


def set_timezone(name):
    """Switch the reference timezone (called by the application factory)"""
    global LOCAL_TZ
    LOCAL_TZ = pytz.timezone(name)
    return LOCAL_TZ


def now():
    """Get current datetime in the reference timezone as naive datetime for database compatibility"""
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def to_local(dt):
    """Convert any datetime to the reference timezone and return as naive"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Already naive, assume it's in local time
        return dt
    return dt.astimezone(LOCAL_TZ).replace(tzinfo=None)


def to_local_aware(dt):
    """Convert a naive datetime to a timezone-aware local datetime"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return LOCAL_TZ.localize(dt)
    return dt.astimezone(LOCAL_TZ)


def isoformat(dt):
    """Serialize a stored timestamp as ISO-8601 with the reference offset"""
    if dt is None:
        return None
    return to_local_aware(dt).isoformat()


def parse_timestamp(value):
    """
    Parse an absolute ISO-8601 timestamp into a naive local datetime.
    Accepts a trailing 'Z' and a space instead of 'T'; naive input is taken as local time.
    Raises ValueError for anything unparseable or outside the representable range.
    """
    if isinstance(value, datetime):
        return to_local(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f'Invalid timestamp: {value!r}')
    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        return to_local(datetime.fromisoformat(text))
    except OverflowError:
        raise ValueError(f'Timestamp out of range: {value!r}')


def civil_minute(dt):
    """Reduce a datetime to its (year, month, day, hour, minute) in the reference timezone"""
    local = to_local(dt)
    return CivilMinute(local.year, local.month, local.day, local.hour, local.minute)
