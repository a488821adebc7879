"""
Trigger engine for scheduled dispenses
Polled by an external caller (about once a minute); fires every active automation
whose schedule falls on the current civil minute of the reference timezone
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from medmonitor.errors import DispenserError
from medmonitor.models import db
from medmonitor.models.automation import Automation, STATUS_ON, STATUS_OFF
from medmonitor.models.history import HistoryRecord
from medmonitor.services import inventory_store
from medmonitor.services.status_classifier import PENDING
from medmonitor.utils.timezone import now as tz_now, to_local, civil_minute

logger = logging.getLogger(__name__)


@dataclass
class TriggerResult:
    triggered: bool
    message: str
    automations: List[dict] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)

    def to_dict(self):
        return {
            'triggered': self.triggered,
            'message': self.message,
            'automations': self.automations,
            'skipped': self.skipped
        }


def is_due(automation, current_minute):
    """Same date, hour and minute; seconds are ignored and there is no tolerance window"""
    return civil_minute(automation.schedule_time) == current_minute


def _claim(automation_id, fired_at):
    """Retire the automation only if it is still on; False means another run already fired it"""
    claimed = Automation.query.filter_by(id=automation_id, status=STATUS_ON).update(
        {
            Automation.status: STATUS_OFF,
            Automation.taken_time: None,
            Automation.fired_at: fired_at,
            Automation.updated_at: fired_at
        },
        synchronize_session='evaluate'
    )
    return claimed == 1


def fire_automation(automation, fired_at):
    """
    Apply the side effects of one due automation in a single transaction:
    retire it, take one dose out of inventory and open a pending history record.
    Returns the new history record, or None if the automation was already retired.
    """
    snapshot = automation.to_dict()
    if not _claim(automation.id, fired_at):
        db.session.rollback()
        return None

    inventory_store.decrement(snapshot['medicine'], 1, at=fired_at)

    record = HistoryRecord(
        history_title=snapshot['automation_title'] or None,
        action=snapshot['action'] or None,
        medicine=snapshot['medicine'],
        scheduled_time=automation.schedule_time,
        taken_time=None,
        status=PENDING,
        automation_id=snapshot['id'],
        correlation_id=uuid.uuid4().hex,
        created_at=fired_at,
        updated_at=fired_at
    )
    db.session.add(record)
    db.session.commit()
    return record


def run_trigger_check(current_time=None):
    """
    Fire every automation due at the current minute.

    A failing automation is rolled back and reported in `skipped`; the others still fire.
    Errors while fetching the automations propagate to the caller.
    """
    now = to_local(current_time) if current_time else tz_now()
    current_minute = civil_minute(now)
    logger.debug('Trigger check at %s', now.isoformat())

    active = Automation.query.filter_by(status=STATUS_ON).all()
    if not active:
        return TriggerResult(triggered=False, message='No active automations found')

    due = [(a.id, a) for a in active if is_due(a, current_minute)]

    fired = []
    skipped = []
    for automation_id, automation in due:
        snapshot = automation.to_dict()
        try:
            record = fire_automation(automation, now)
        except (DispenserError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.error('Automation %s could not be fired: %s', automation_id, e)
            skipped.append({'id': automation_id, 'medicine': snapshot['medicine'], 'error': str(e)})
            continue

        if record is None:
            logger.info('Automation %s already fired by another check', automation_id)
            continue

        logger.info(
            'Automation %s fired: %s dispensed, history %s pending',
            automation_id, snapshot['medicine'], record.id
        )
        snapshot.update(status=STATUS_OFF, history_id=record.id, correlation_id=record.correlation_id)
        fired.append(snapshot)

    if fired:
        return TriggerResult(
            triggered=True,
            message=f'{len(fired)} automation(s) triggered',
            automations=fired,
            skipped=skipped
        )
    return TriggerResult(
        triggered=False,
        message='No automations matched current time',
        skipped=skipped
    )
