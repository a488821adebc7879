from datetime import datetime

import pytz

from medmonitor.models import db
from medmonitor.models.automation import Automation
from medmonitor.models.history import HistoryRecord
from medmonitor.services import automation_registry, inventory_store
from medmonitor.services.trigger_engine import run_trigger_check


def schedule(medicine='medicine_1', when='2026-10-19T14:32:00+08:00', title='Afternoon dose', status='on'):
    return automation_registry.create_automation({
        'automation_title': title,
        'action': 'dispense',
        'medicine': medicine,
        'schedule_time': when,
        'status': status,
    })


def test_no_active_automations(app):
    schedule(status='off')

    result = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32))

    assert result.triggered is False
    assert result.message == 'No active automations found'


def test_fires_on_matching_minute(app):
    automation = schedule()

    result = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32, 47))

    assert result.triggered is True
    assert [a['id'] for a in result.automations] == [automation.id]
    assert inventory_store.get_counters()['medicine_1'] == 4

    records = HistoryRecord.query.all()
    assert len(records) == 1
    record = records[0]
    assert record.status == 'pending'
    assert record.taken_time is None
    assert record.scheduled_time == datetime(2026, 10, 19, 14, 32)
    assert record.automation_id == automation.id
    assert record.correlation_id == result.automations[0]['correlation_id']

    retired = db.session.get(Automation, automation.id)
    assert retired.status == 'off'
    assert retired.taken_time is None
    assert retired.fired_at == datetime(2026, 10, 19, 14, 32, 47)


def test_does_not_fire_twice_in_same_minute(app):
    schedule()

    assert run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32, 5)).triggered
    again = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32, 50))

    assert again.triggered is False
    assert HistoryRecord.query.count() == 1
    assert inventory_store.get_counters()['medicine_1'] == 4


def test_missed_minute_never_fires(app):
    automation = schedule()

    result = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 33))

    assert result.triggered is False
    assert result.message == 'No automations matched current time'
    assert db.session.get(Automation, automation.id).status == 'on'


def test_same_time_other_day_does_not_fire(app):
    schedule()
    assert run_trigger_check(current_time=datetime(2026, 10, 20, 14, 32)).triggered is False


def test_matches_in_reference_timezone(app):
    schedule(when='2026-10-19T06:32:00Z')

    now_utc = pytz.utc.localize(datetime(2026, 10, 19, 6, 32, 10))
    result = run_trigger_check(current_time=now_utc)

    assert result.triggered is True


def test_fires_every_due_automation(app):
    schedule(medicine='medicine_1')
    schedule(medicine='medicine_2', title='Vitamin')
    schedule(medicine='medicine_3', when='2026-10-19T18:00:00+08:00')

    result = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32))

    assert sorted(a['medicine'] for a in result.automations) == ['medicine_1', 'medicine_2']
    assert inventory_store.get_counters() == {'medicine_1': 4, 'medicine_2': 4, 'medicine_3': 5}


def test_failing_automation_is_skipped(app):
    broken = schedule(medicine='medicine_9')
    good = schedule(medicine='medicine_2')

    result = run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32))

    assert result.triggered is True
    assert [a['id'] for a in result.automations] == [good.id]
    assert [s['id'] for s in result.skipped] == [broken.id]
    # rolled back: still active, no history written for it
    assert db.session.get(Automation, broken.id).status == 'on'
    assert HistoryRecord.query.filter_by(medicine='medicine_9').count() == 0


def test_empty_compartment_goes_negative(app):
    inventory_store.add_stock({'medicine_1': -5})
    schedule()

    run_trigger_check(current_time=datetime(2026, 10, 19, 14, 32))

    assert inventory_store.get_counters()['medicine_1'] == -1
