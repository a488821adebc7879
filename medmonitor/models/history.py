from medmonitor.models import db
from medmonitor.utils.timezone import now as tz_now, isoformat


class HistoryRecord(db.Model):
    __tablename__ = 'history'

    id = db.Column(db.Integer, primary_key=True)
    history_title = db.Column(db.String(200), nullable=True)
    action = db.Column(db.String(100), nullable=True)
    medicine = db.Column(db.String(50), nullable=False, index=True)
    scheduled_time = db.Column(db.DateTime, nullable=False)
    taken_time = db.Column(db.DateTime, nullable=True)  # NULL while pending
    status = db.Column(db.String(30), nullable=False, default='pending')
    # Set when the record was produced by a fired automation; by value, not a foreign key
    automation_id = db.Column(db.Integer, nullable=True)
    correlation_id = db.Column(db.String(32), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, default=tz_now, index=True)
    updated_at = db.Column(db.DateTime, default=tz_now)

    @property
    def is_pending(self):
        return self.taken_time is None

    def __repr__(self):
        return f'<HistoryRecord {self.id} - {self.medicine} {self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'history_title': self.history_title,
            'action': self.action,
            'medicine': self.medicine,
            'scheduled_time': isoformat(self.scheduled_time),
            'taken_time': isoformat(self.taken_time) or '',
            'status': self.status,
            'automation_id': self.automation_id,
            'correlation_id': self.correlation_id,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }
