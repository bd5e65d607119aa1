import uuid
from verification_service.extensions import db


class Event(db.Model):
    __tablename__ = 'events'

    event_id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(255), nullable=False)
    # Inclusive calendar range, no time component
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    ticket_types = db.relationship('TicketType', backref=db.backref('event', lazy=True), lazy=True)

    def contains(self, day):
        return self.start_date <= day <= self.end_date


class TicketType(db.Model):
    __tablename__ = 'ticket_types'

    ticket_type_id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey('events.event_id'), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    is_package = db.Column(db.Boolean, nullable=False, default=False)
    package_days_count = db.Column(db.Integer, nullable=True)
    # Explicit list of "YYYY-MM-DD" strings, or NULL for the whole event span
    valid_days = db.Column(db.JSON, nullable=True)
