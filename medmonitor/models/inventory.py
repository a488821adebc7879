from medmonitor.models import db
from medmonitor.utils.timezone import now as tz_now, isoformat


class InventoryCounter(db.Model):
    """Remaining doses for one dispenser compartment"""
    __tablename__ = 'inventory_counters'

    id = db.Column(db.Integer, primary_key=True)
    medicine = db.Column(db.String(50), unique=True, nullable=False)
    count = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False)
    last_updated = db.Column(db.DateTime, default=tz_now)

    # Optimistic concurrency: ORM updates fail with StaleDataError on a stale version
    __mapper_args__ = {'version_id_col': version_id}

    def __repr__(self):
        return f'<InventoryCounter {self.medicine}={self.count}>'

    def to_dict(self):
        return {
            'medicine': self.medicine,
            'count': self.count,
            'last_updated': isoformat(self.last_updated)
        }
