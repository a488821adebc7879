from medmonitor.models import db
from medmonitor.utils.timezone import now as tz_now, isoformat

STATUS_ON = 'on'
STATUS_OFF = 'off'
AUTOMATION_STATUSES = (STATUS_ON, STATUS_OFF)


class Automation(db.Model):
    __tablename__ = 'automations'

    id = db.Column(db.Integer, primary_key=True)
    automation_title = db.Column(db.String(200), nullable=False)
    action = db.Column(db.String(100), nullable=False)
    medicine = db.Column(db.String(50), nullable=False, index=True)
    schedule_time = db.Column(db.DateTime, nullable=False)  # absolute, not recurring
    taken_time = db.Column(db.DateTime, nullable=True)  # filled when the fired dose is resolved
    status = db.Column(db.String(3), nullable=False, default=STATUS_ON, index=True)
    fired_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=tz_now)
    updated_at = db.Column(db.DateTime, default=tz_now)

    def __repr__(self):
        return f'<Automation {self.automation_title} - {self.medicine} at {self.schedule_time}>'

    def to_dict(self):
        return {
            'id': self.id,
            'automation_title': self.automation_title,
            'action': self.action,
            'medicine': self.medicine,
            'schedule_time': isoformat(self.schedule_time),
            'taken_time': isoformat(self.taken_time) or '',
            'status': self.status,
            'fired_at': isoformat(self.fired_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }
