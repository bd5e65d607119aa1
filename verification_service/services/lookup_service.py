"""
Lookup Service
Read-only ticket preview for staff (manual search at the gate).
Applies the same ticket gates as a scan but never consumes an entitlement.
"""

from dataclasses import dataclass

from verification_service.services import entitlement_store
from verification_service.services.attendance import build_attendance_summary
from verification_service.services.scan_service import evaluate_entitlement, message_for


@dataclass
class LookupResult:
    ticket: object
    entitlements: list
    attendance: object
    preview: object

    def to_dict(self):
        return {
            "ticket": self.ticket.to_dict(),
            "entitlements": [e.to_dict() for e in self.entitlements],
            "attendance": self.attendance.to_dict(),
            # What a scan would decide right now
            "scan_preview": {
                "outcome": self.preview.outcome.value,
                "reason": self.preview.reason,
                "message": message_for(self.preview.outcome),
            },
        }


def lookup(code_or_id, today, expected_event_id=None):
    """Returns a LookupResult, or None when no such ticket exists."""
    ticket = entitlement_store.find_ticket(code_or_id)
    if ticket is None:
        return None

    entitlements = entitlement_store.list_entitlements(ticket.ticket_id)
    preview = evaluate_entitlement(ticket, ticket.event, entitlements, today, expected_event_id)
    return LookupResult(
        ticket=ticket,
        entitlements=entitlements,
        attendance=build_attendance_summary(entitlements),
        preview=preview,
    )
