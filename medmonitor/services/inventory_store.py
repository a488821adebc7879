"""
Inventory accessor for the dispenser compartments
Counters are stored one row per medicine; callers only ever see a {medicine: count} mapping
"""
import logging

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from medmonitor.errors import ConflictError, NotFoundError, ValidationError
from medmonitor.models import db
from medmonitor.models.inventory import InventoryCounter
from medmonitor.utils.timezone import now as tz_now

logger = logging.getLogger(__name__)


def medicine_names():
    return tuple(current_app.config['MEDICINES'])


def max_capacity():
    return current_app.config['MAX_CAPACITY']


def _load_counters():
    counters = {c.medicine: c for c in InventoryCounter.query.all()}
    if not counters:
        raise NotFoundError('Medicine settings document not found')

    missing = [name for name in medicine_names() if name not in counters]
    if missing:
        raise ValidationError(
            'Required medicine fields not found in document',
            missingFields=missing
        )
    return counters


def get_counters():
    """Return the remaining dose count of every medicine"""
    counters = _load_counters()
    return {name: counters[name].count for name in medicine_names()}


def add_stock(deltas):
    """
    Refill compartments. Every delta is applied or none is.

    Returns the previous, added, new_total and remaining_capacity snapshots.
    """
    deltas = deltas or {}
    if not isinstance(deltas, dict):
        raise ValidationError('Request body must map medicines to amounts')
    names = medicine_names()
    capacity = max_capacity()

    unknown = sorted(set(deltas) - set(names))
    if unknown:
        raise ValidationError(f'Unknown medicine(s): {", ".join(unknown)}', allowed=list(names))

    added = {}
    for name in names:
        value = deltas.get(name)
        if value is None:
            value = 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f'Amount for {name} must be an integer', medicine=name)
        added[name] = value

    counters = _load_counters()
    previous = {name: counters[name].count for name in names}
    new_total = {name: previous[name] + added[name] for name in names}

    for name in names:
        if new_total[name] > capacity:
            raise ValidationError(
                f'Cannot add {added[name]} to {name} (current: {previous[name]}) - would exceed {capacity}',
                medicine=name,
                current=previous[name],
                attempted_add=added[name],
                would_be=new_total[name],
                max_allowed=capacity
            )
        if new_total[name] < 0:
            raise ValidationError(
                f'Cannot remove {-added[name]} from {name} (current: {previous[name]}) - would go below 0',
                medicine=name,
                current=previous[name],
                attempted_add=added[name],
                would_be=new_total[name]
            )

    stamp = tz_now()
    for name in names:
        if added[name]:
            counters[name].count = new_total[name]
            counters[name].last_updated = stamp

    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConflictError('Inventory changed while updating, please retry')

    logger.info('Inventory refilled: %s', added)
    return {
        'previous': previous,
        'added': added,
        'new_total': new_total,
        'remaining_capacity': {name: capacity - new_total[name] for name in names}
    }


def decrement(medicine, amount=1, at=None):
    """
    Relative decrement of one counter inside the caller's transaction.
    There is no lower bound: a dispense from an empty compartment goes negative.
    """
    if medicine not in medicine_names():
        raise ValidationError(f'Unknown medicine: {medicine}', allowed=list(medicine_names()))

    updated = InventoryCounter.query.filter_by(medicine=medicine).update(
        {
            InventoryCounter.count: InventoryCounter.count - amount,
            InventoryCounter.version_id: InventoryCounter.version_id + 1,
            InventoryCounter.last_updated: at or tz_now()
        },
        synchronize_session='evaluate'
    )
    if not updated:
        raise NotFoundError(f'No inventory counter for {medicine}')


def seed_counters(initial=0):
    """Create any missing counter; existing counters are left untouched"""
    existing = {c.medicine for c in InventoryCounter.query.all()}
    created = []
    for name in medicine_names():
        if name not in existing:
            db.session.add(InventoryCounter(medicine=name, count=initial))
            created.append(name)
    db.session.commit()
    return created
