"""
Adherence history ledger
"""
import logging

from medmonitor.errors import NotFoundError, ValidationError
from medmonitor.models import db
from medmonitor.models.history import HistoryRecord
from medmonitor.services.automation_registry import _required_text
from medmonitor.services.status_classifier import PENDING, classify_submission
from medmonitor.utils.timezone import now as tz_now, parse_timestamp

logger = logging.getLogger(__name__)


def create_history(data):
    """Store a submitted history record, classifying it right away when taken_time is known"""
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    if not data.get('medicine') or not data.get('scheduled_time'):
        raise ValidationError('Medicine and scheduled_time are required')
    medicine = _required_text(data, 'medicine', 'Medicine')
    scheduled_raw = data['scheduled_time']

    for field in ('history_title', 'action'):
        if data.get(field) is not None and not isinstance(data[field], str):
            raise ValidationError(f'{field} must be a string', field=field)

    try:
        scheduled_time = parse_timestamp(scheduled_raw)
    except ValueError:
        raise ValidationError('Invalid scheduled_time format. Please use ISO 8601.', field='scheduled_time')

    taken_time = None
    status = PENDING
    if data.get('taken_time'):
        try:
            taken_time = parse_timestamp(data['taken_time'])
        except ValueError:
            raise ValidationError('Invalid taken_time format. Please use ISO 8601.', field='taken_time')
        status = classify_submission(scheduled_time, taken_time)

    stamp = tz_now()
    record = HistoryRecord(
        history_title=data.get('history_title') or None,
        action=data.get('action') or None,
        medicine=medicine,
        scheduled_time=scheduled_time,
        taken_time=taken_time,
        status=status,
        created_at=stamp,
        updated_at=stamp
    )
    db.session.add(record)
    db.session.commit()

    logger.info('History %s recorded for %s (%s)', record.id, medicine, status)
    return record


def get_history(history_id):
    record = db.session.get(HistoryRecord, history_id)
    if record is None:
        raise NotFoundError('History record not found')
    return record


def list_history(page=1, limit=10):
    """Newest records first, one page at a time"""
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError('Invalid page number')
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError('Invalid limit value')

    pagination = HistoryRecord.query.order_by(
        HistoryRecord.created_at.desc(), HistoryRecord.id.desc()
    ).paginate(page=page, per_page=limit, error_out=False)

    return {
        'items': pagination.items,
        'pagination': {
            'total': pagination.total,
            'page': page,
            'limit': limit,
            'total_pages': pagination.pages,
            'has_next': page * limit < pagination.total,
            'has_prev': page > 1
        }
    }
