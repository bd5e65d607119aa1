"""
Scan Log Model
Audit history of every scan attempt, successful or not.
"""

import uuid
from datetime import datetime, timezone
from verification_service.extensions import db


class ScanLog(db.Model):
    __tablename__ = "scan_logs"

    scan_id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # NULL when the credential could not be tied to a ticket
    ticket_id = db.Column(db.Uuid(as_uuid=True), nullable=True, index=True)
    staff_id = db.Column(db.String(64), nullable=True)
    event_id = db.Column(db.Uuid(as_uuid=True), nullable=True)
    result = db.Column(db.String(32), nullable=False)
    reason = db.Column(db.String(64), nullable=True)
    scanned_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self):
        return {
            "scan_id":    str(self.scan_id),
            "ticket_id":  str(self.ticket_id) if self.ticket_id else None,
            "staff_id":   self.staff_id,
            "event_id":   str(self.event_id) if self.event_id else None,
            "result":     self.result,
            "reason":     self.reason,
            "scanned_at": self.scanned_at.isoformat(),
        }
