"""
Ticket Model
Status: ACTIVE | CANCELLED | EXPIRED
"""

import uuid
from datetime import datetime, timezone
from verification_service.extensions import db


class Ticket(db.Model):
    __tablename__ = "tickets"

    ticket_id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    event_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey("events.event_id"), nullable=False)
    user_id = db.Column(db.Uuid(as_uuid=True), nullable=False)
    ticket_type_id = db.Column(
        db.Uuid(as_uuid=True), db.ForeignKey("ticket_types.ticket_type_id"), nullable=False
    )
    attendee_name = db.Column(db.String(255), nullable=True)
    attendee_dni = db.Column(db.String(20), nullable=True)
    status = db.Column(
        db.Enum("ACTIVE", "CANCELLED", "EXPIRED", name="ticket_status"),
        nullable=False,
        default="ACTIVE"
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    event = db.relationship("Event", lazy="joined")
    ticket_type = db.relationship("TicketType", lazy="joined")

    def to_dict(self):
        return {
            "ticket_id":        str(self.ticket_id),
            "ticket_code":      self.ticket_code,
            "event_id":         str(self.event_id),
            "user_id":          str(self.user_id),
            "ticket_type_id":   str(self.ticket_type_id),
            "ticket_type_name": self.ticket_type.name if self.ticket_type else None,
            "event_name":       self.event.name if self.event else None,
            "attendee_name":    self.attendee_name,
            "attendee_dni":     self.attendee_dni,
            "status":           self.status,
            "created_at":       self.created_at.isoformat() if self.created_at else None,
        }
