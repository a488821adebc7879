"""
Adherence classification

Two named policies exist:
  classify_resolution  pending -> on_time / late / missed / expired, applied when a
                       "taken" signal resolves a pending record
  classify_submission  "taken on time" / "taken late", applied when a history record
                       is submitted with its taken_time already known
"""
import logging
from datetime import timedelta

from flask import current_app

from medmonitor.errors import ConflictError, NotFoundError
from medmonitor.models import db
from medmonitor.models.automation import Automation, STATUS_OFF
from medmonitor.models.history import HistoryRecord
from medmonitor.utils.timezone import now as tz_now, to_local, to_local_aware

logger = logging.getLogger(__name__)

PENDING = 'pending'
ON_TIME = 'on_time'
LATE = 'late'
MISSED = 'missed'
EXPIRED = 'expired'
RESOLVED_STATUSES = (ON_TIME, LATE, MISSED, EXPIRED)

TAKEN_ON_TIME = 'taken on time'
TAKEN_LATE = 'taken late'

ON_TIME_GRACE = timedelta(minutes=5)
LATE_LIMIT = timedelta(minutes=10)
MISSED_LIMIT = timedelta(hours=24)


def _elapsed(start, end):
    """Real elapsed time; naive values are local wall times, so DST shifts are accounted for"""
    return to_local_aware(end) - to_local_aware(start)


def classify_resolution(scheduled_time, resolved_time, grace=ON_TIME_GRACE):
    """
    Classify a dose resolved at resolved_time against its schedule.
    A grace of zero gives the strict table where any delay counts as late.
    """
    delta = _elapsed(scheduled_time, resolved_time)
    if delta <= grace:
        return ON_TIME
    if delta <= LATE_LIMIT:
        return LATE
    if delta <= MISSED_LIMIT:
        return MISSED
    return EXPIRED


def classify_submission(scheduled_time, taken_time):
    delta = _elapsed(scheduled_time, taken_time)
    if delta <= ON_TIME_GRACE:
        return TAKEN_ON_TIME
    return TAKEN_LATE


def _configured_grace():
    return timedelta(minutes=current_app.config.get('ON_TIME_GRACE_MINUTES', 5))


def _latest_fired_automation():
    """The most recently fired automation whose dose has not been resolved yet"""
    return Automation.query.filter(
        Automation.status == STATUS_OFF,
        Automation.fired_at.isnot(None),
        Automation.taken_time.is_(None)
    ).order_by(Automation.fired_at.desc(), Automation.id.desc()).first()


def _pending_query():
    return HistoryRecord.query.filter(HistoryRecord.taken_time.is_(None)).order_by(
        HistoryRecord.created_at.desc(), HistoryRecord.id.desc()
    )


def select_pending_record(history_id=None, correlation_id=None, medicine=None):
    """
    Pick the single pending record a "taken" signal refers to.

    An explicit id or correlation id wins. A requested medicine restricts the choice to
    its newest pending record. Otherwise the record opened by the latest fired automation
    still awaiting its dose is preferred, then that automation's medicine, then the newest
    pending record overall.
    """
    if history_id is not None or correlation_id is not None:
        if history_id is not None:
            record = db.session.get(HistoryRecord, history_id)
        else:
            record = HistoryRecord.query.filter_by(correlation_id=correlation_id).first()
        if record is None:
            raise NotFoundError('History record not found')
        if not record.is_pending:
            raise ConflictError('History record already resolved', id=record.id, status=record.status)
        return record

    query = _pending_query()
    if medicine is not None:
        return query.filter(HistoryRecord.medicine == medicine).first()

    automation = _latest_fired_automation()
    if automation is not None:
        correlated = query.filter(HistoryRecord.automation_id == automation.id).first()
        if correlated is not None:
            return correlated
        record = query.filter(HistoryRecord.medicine == automation.medicine).first()
        if record is not None:
            return record
    return query.first()


def resolve_taken_status(history_id=None, correlation_id=None, medicine=None, current_time=None):
    """
    Resolve a "taken" signal. Returns None when nothing is pending, otherwise the
    fields written to the selected record.
    """
    resolved_at = to_local(current_time) if current_time else tz_now()

    record = select_pending_record(history_id, correlation_id, medicine)
    if record is None:
        logger.info('Taken signal received with no pending history records')
        return None

    status = classify_resolution(record.scheduled_time, resolved_at, grace=_configured_grace())
    record.taken_time = resolved_at
    record.status = status
    record.updated_at = resolved_at

    automation = None
    if record.automation_id is not None:
        automation = db.session.get(Automation, record.automation_id)
        if automation is not None and automation.taken_time is None:
            automation.taken_time = resolved_at
            automation.updated_at = resolved_at
        else:
            automation = None

    db.session.commit()
    logger.info('History %s resolved as %s', record.id, status)

    data = record.to_dict()
    result = {
        key: data[key]
        for key in ('id', 'medicine', 'scheduled_time', 'taken_time', 'status',
                    'updated_at', 'correlation_id')
    }
    if automation is not None:
        result['automation_id'] = automation.id
    return result
