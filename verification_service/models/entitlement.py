"""
Ticket Day Entitlement Model
One row per (ticket, calendar day). Status: AVAILABLE | USED
"""

import uuid
from verification_service.extensions import db


class TicketDayEntitlement(db.Model):
    __tablename__ = "ticket_day_entitlements"
    __table_args__ = (
        db.UniqueConstraint("ticket_id", "date", name="uq_entitlement_ticket_date"),
    )

    entitlement_id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_id = db.Column(
        db.Uuid(as_uuid=True), db.ForeignKey("tickets.ticket_id"), nullable=False, index=True
    )
    date = db.Column(db.Date, nullable=False)
    status = db.Column(
        db.Enum("AVAILABLE", "USED", name="entitlement_status"),
        nullable=False,
        default="AVAILABLE"
    )
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "entitlement_id": str(self.entitlement_id),
            "ticket_id":      str(self.ticket_id),
            "date":           self.date.isoformat(),
            "status":         self.status,
            "used_at":        self.used_at.isoformat() if self.used_at else None,
        }
