"""
Automation registry: scheduled dispense rules
"""
import logging

from medmonitor.errors import ConflictError, NotFoundError, ValidationError
from medmonitor.models import db
from medmonitor.models.automation import Automation, AUTOMATION_STATUSES, STATUS_ON
from medmonitor.services.inventory_store import medicine_names
from medmonitor.utils.timezone import now as tz_now, parse_timestamp

logger = logging.getLogger(__name__)

INSTANT_TITLE = 'Instant Dispense'
INSTANT_ACTION = 'dispense'


def _required_text(data, field, label):
    value = data.get(field)
    if not isinstance(value, str) or value.strip() == '':
        raise ValidationError(f'{label} cannot be empty', field=field)
    return value.strip()


def _validate_status(status):
    if status not in AUTOMATION_STATUSES:
        raise ValidationError("Status must be either 'on' or 'off'", field='status')
    return status


def create_automation(data, check_duplicate=True):
    """Validate and store a new automation; duplicates of (title, medicine, schedule_time) are rejected"""
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    title = _required_text(data, 'automation_title', 'Automation title')
    action = _required_text(data, 'action', 'Action')
    medicine = _required_text(data, 'medicine', 'Medicine')
    schedule_raw = _required_text(data, 'schedule_time', 'Schedule time')

    status = data.get('status') or STATUS_ON
    _validate_status(status)

    try:
        schedule_time = parse_timestamp(schedule_raw)
    except ValueError:
        raise ValidationError(
            'Invalid schedule_time format. Please use ISO 8601 format', field='schedule_time'
        )

    taken_time = None
    taken_raw = data.get('taken_time')
    if taken_raw:
        try:
            taken_time = parse_timestamp(taken_raw)
        except ValueError:
            raise ValidationError(
                'Invalid taken_time format. Please use ISO 8601 format or leave empty',
                field='taken_time'
            )

    if check_duplicate:
        # Check-then-insert is not atomic; two identical concurrent creates can both pass
        existing = Automation.query.filter_by(
            automation_title=title,
            medicine=medicine,
            schedule_time=schedule_time
        ).first()
        if existing:
            raise ConflictError('An automation with these details already exists', id=existing.id)

    stamp = tz_now()
    automation = Automation(
        automation_title=title,
        action=action,
        medicine=medicine,
        schedule_time=schedule_time,
        taken_time=taken_time,
        status=status,
        created_at=stamp,
        updated_at=stamp
    )
    db.session.add(automation)
    db.session.commit()

    logger.info('Automation %s created for %s at %s', automation.id, medicine, schedule_time)
    return automation


def create_instant_dispense(medicine):
    """
    Store an automation that is due right now for one of the dispenser's medicines.
    Every request dispenses, so repeated requests within the same second are not duplicates.
    """
    if medicine not in medicine_names():
        raise ValidationError(
            f'Medicine must be one of: {", ".join(medicine_names())}',
            field='medicine'
        )
    schedule_time = tz_now().replace(microsecond=0)
    return create_automation({
        'automation_title': INSTANT_TITLE,
        'action': INSTANT_ACTION,
        'medicine': medicine,
        'schedule_time': schedule_time.isoformat(),
        'status': STATUS_ON
    }, check_duplicate=False)


def list_automations():
    return Automation.query.all()


def get_automation(automation_id):
    automation = db.session.get(Automation, automation_id)
    if automation is None:
        raise NotFoundError('Automation not found')
    return automation


def set_status(automation_id, status):
    """Toggle an automation on or off"""
    _validate_status(status)
    automation = get_automation(automation_id)
    automation.status = status
    automation.updated_at = tz_now()
    db.session.commit()
    return automation


def delete_automation(automation_id):
    """Remove an automation; an unknown id is a no-op"""
    automation = db.session.get(Automation, automation_id)
    if automation is not None:
        db.session.delete(automation)
        db.session.commit()
        logger.info('Automation %s deleted', automation_id)
    return automation is not None
