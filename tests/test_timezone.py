from datetime import datetime

import pytest
import pytz

from medmonitor.utils.timezone import civil_minute, isoformat, parse_timestamp


def test_parse_converts_offsets_to_reference_timezone(app):
    assert parse_timestamp('2026-10-19T06:32:00Z') == datetime(2026, 10, 19, 14, 32)
    assert parse_timestamp('2026-10-19T14:32:00+08:00') == datetime(2026, 10, 19, 14, 32)


def test_parse_naive_is_local_time(app):
    assert parse_timestamp('2026-10-19 14:32') == datetime(2026, 10, 19, 14, 32)


@pytest.mark.parametrize('value', [
    '', '   ', 'tomorrow', '2026-13-01T00:00:00', None, 42,
    '9999-12-31T23:59:00-14:00', '0001-01-01T00:00:00+14:00',
])
def test_parse_rejects_garbage(app, value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_civil_minute_crosses_date_line(app):
    utc = pytz.utc.localize(datetime(2026, 10, 19, 17, 5, 59))
    assert civil_minute(utc) == (2026, 10, 20, 1, 5)


def test_isoformat_carries_offset(app):
    assert isoformat(datetime(2026, 10, 19, 14, 32)) == '2026-10-19T14:32:00+08:00'
    assert isoformat(None) is None
