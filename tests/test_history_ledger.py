from datetime import datetime

import pytest

from medmonitor.errors import NotFoundError, ValidationError
from medmonitor.services import history_ledger


def test_submission_without_taken_time_is_pending(app):
    record = history_ledger.create_history({
        'history_title': 'Evening dose',
        'medicine': 'medicine_1',
        'scheduled_time': '2026-10-19T20:00:00+08:00',
    })

    assert record.status == 'pending'
    assert record.is_pending
    assert record.scheduled_time == datetime(2026, 10, 19, 20, 0)
    assert record.to_dict()['taken_time'] == ''


@pytest.mark.parametrize('taken, expected', [
    ('2026-10-19T09:58:00+08:00', 'taken on time'),
    ('2026-10-19T10:04:00+08:00', 'taken on time'),
    ('2026-10-19T10:10:00+08:00', 'taken late'),
])
def test_submission_with_taken_time_is_classified(app, taken, expected):
    record = history_ledger.create_history({
        'medicine': 'medicine_2',
        'scheduled_time': '2026-10-19T10:00:00+08:00',
        'taken_time': taken,
    })
    assert record.status == expected
    assert not record.is_pending


@pytest.mark.parametrize('data', [
    {},
    {'medicine': 'medicine_1'},
    {'scheduled_time': '2026-10-19T10:00:00'},
    {'medicine': 'medicine_1', 'scheduled_time': 'noon'},
    {'medicine': 'medicine_1', 'scheduled_time': '2026-10-19T10:00:00', 'taken_time': 'later'},
    {'medicine': {'x': 1}, 'scheduled_time': '2026-10-19T10:00:00'},
    {'medicine': ['medicine_1'], 'scheduled_time': '2026-10-19T10:00:00'},
    {'medicine': '   ', 'scheduled_time': '2026-10-19T10:00:00'},
    {'medicine': 'medicine_1', 'scheduled_time': 1760000000},
    {'medicine': 'medicine_1', 'scheduled_time': '2026-10-19T10:00:00', 'history_title': ['a']},
    {'medicine': 'medicine_1', 'scheduled_time': '2026-10-19T10:00:00', 'action': 7},
    {'medicine': 'medicine_1', 'scheduled_time': '9999-12-31T23:59:00-14:00'},
])
def test_submission_validation(app, data):
    with pytest.raises(ValidationError):
        history_ledger.create_history(data)


def test_pagination(app):
    for i in range(25):
        history_ledger.create_history({'medicine': 'medicine_1', 'scheduled_time': f'2026-10-19T10:{i:02d}:00'})

    result = history_ledger.list_history(page=2, limit=10)

    assert [r.id for r in result['items']] == list(range(15, 5, -1))
    assert result['pagination'] == {
        'total': 25,
        'page': 2,
        'limit': 10,
        'total_pages': 3,
        'has_next': True,
        'has_prev': True,
    }


def test_last_and_out_of_range_pages(app):
    for i in range(25):
        history_ledger.create_history({'medicine': 'medicine_1', 'scheduled_time': '2026-10-19T10:00:00'})

    last = history_ledger.list_history(page=3, limit=10)
    assert len(last['items']) == 5
    assert last['pagination']['has_next'] is False

    beyond = history_ledger.list_history(page=9, limit=10)
    assert beyond['items'] == []


def test_empty_history(app):
    result = history_ledger.list_history()
    assert result['items'] == []
    assert result['pagination']['total_pages'] == 0
    assert result['pagination']['has_prev'] is False


@pytest.mark.parametrize('page, limit', [(0, 10), (1, 0), (-1, 5), ('2', 10)])
def test_invalid_paging(app, page, limit):
    with pytest.raises(ValidationError):
        history_ledger.list_history(page=page, limit=limit)


def test_get_history_not_found(app):
    with pytest.raises(NotFoundError):
        history_ledger.get_history(1)
