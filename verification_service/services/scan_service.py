"""
Scan Service
Decides what happens when staff scan a ticket QR at the gate.

Outcomes are a closed set and are returned, never raised:
    INVALID | TICKET_INACTIVE | OUT_OF_RANGE | NO_ENTITLEMENT_TODAY | ALREADY_USED | ACCEPTED
Only ACCEPTED writes, and it does so through a conditional UPDATE so that two
devices scanning the same entitlement can never both be accepted.
Database errors propagate to the caller as faults.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from verification_service.extensions import db
from verification_service.services import entitlement_store
from verification_service.services.attendance import build_attendance_summary

logger = logging.getLogger(__name__)


class ScanOutcome(str, Enum):
    INVALID = "INVALID"
    TICKET_INACTIVE = "TICKET_INACTIVE"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    NO_ENTITLEMENT_TODAY = "NO_ENTITLEMENT_TODAY"
    ALREADY_USED = "ALREADY_USED"
    ACCEPTED = "ACCEPTED"


OUTCOME_MESSAGES = {
    ScanOutcome.INVALID: "Invalid QR code.",
    ScanOutcome.TICKET_INACTIVE: "Ticket is not active.",
    ScanOutcome.OUT_OF_RANGE: "The event is not running today.",
    ScanOutcome.NO_ENTITLEMENT_TODAY: "Ticket is not valid for today.",
    ScanOutcome.ALREADY_USED: "Attendance already registered today.",
    ScanOutcome.ACCEPTED: "Attendance registered.",
}


def message_for(outcome):
    try:
        return OUTCOME_MESSAGES[outcome]
    except KeyError:
        raise ValueError(f"Unhandled scan outcome: {outcome!r}") from None


@dataclass
class ScanDecision:
    outcome: ScanOutcome
    reason: str
    entitlement: object = None


@dataclass
class ScanResult:
    outcome: ScanOutcome
    reason: str
    scanned_at: datetime
    ticket: object = None
    entitlement: object = None
    attendance: object = None

    @property
    def message(self):
        return message_for(self.outcome)

    def to_dict(self):
        return {
            "success": self.outcome is ScanOutcome.ACCEPTED,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "message": self.message,
            "scanned_at": self.scanned_at.isoformat() if self.scanned_at else None,
            "ticket": self.ticket.to_dict() if self.ticket else None,
            "entitlement": self.entitlement.to_dict() if self.entitlement else None,
            "attendance": self.attendance.to_dict() if self.attendance else None,
        }


def scan_today(tz_name=None):
    """Venue calendar day: in SCAN_TIMEZONE when configured, else server local."""
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).date()
    return date.today()


def evaluate_entitlement(ticket, event, entitlements, today, expected_event_id=None):
    """
    Ticket-level gates shared by scanning and staff lookup. Validity is judged
    against the actual scan day, never the date embedded in the credential.
    """
    if ticket.status != "ACTIVE":
        return ScanDecision(ScanOutcome.TICKET_INACTIVE, ticket.status)

    if expected_event_id is not None and str(ticket.event_id) != str(expected_event_id):
        return ScanDecision(ScanOutcome.INVALID, "WRONG_EVENT")

    if event is None or not event.contains(today):
        return ScanDecision(ScanOutcome.OUT_OF_RANGE, "OUT_OF_RANGE")

    match = next((e for e in entitlements if e.date == today), None)
    if match is None:
        return ScanDecision(ScanOutcome.NO_ENTITLEMENT_TODAY, "NO_ENTITLEMENT_TODAY")

    if match.status == "USED":
        return ScanDecision(ScanOutcome.ALREADY_USED, "ALREADY_USED", match)

    return ScanDecision(ScanOutcome.ACCEPTED, "ACCEPTED", match)


def check_credential(codec, credential):
    """INVALID decision for an unreadable or forged credential, None if it verifies."""
    if credential is None:
        return ScanDecision(ScanOutcome.INVALID, "MALFORMED")

    if not codec.verify(credential):
        return ScanDecision(ScanOutcome.INVALID, "BAD_SIGNATURE")

    return None


def decide(codec, credential, ticket, event, entitlements, today, expected_event_id=None):
    """Pure decision for one scan attempt. ACCEPTED here still has to win the claim."""
    return check_credential(codec, credential) or match_ticket(
        credential, ticket, event, entitlements, today, expected_event_id
    )


def match_ticket(credential, ticket, event, entitlements, today, expected_event_id=None):
    """Decision for a verified credential against the ticket it names."""
    if ticket is None:
        return ScanDecision(ScanOutcome.INVALID, "TICKET_NOT_FOUND")

    if credential.ticket_id != str(ticket.ticket_id) or credential.event_id != str(ticket.event_id):
        return ScanDecision(ScanOutcome.INVALID, "CREDENTIAL_MISMATCH")

    return evaluate_entitlement(ticket, event, entitlements, today, expected_event_id)


def scan(codec, raw_text, today, staff_id=None, expected_event_id=None, now=None):
    """
    Decode, decide and (on ACCEPTED) consume today's entitlement.
    A caller that loses the claim race gets ALREADY_USED with the winner's scanned_at.
    """
    now = now or datetime.now(timezone.utc)

    credential = codec.decode(raw_text)
    ticket = None
    decision = check_credential(codec, credential)
    if decision is None:
        ticket = entitlement_store.get_ticket_by_code(credential.ticket_code)
        entitlements = entitlement_store.list_entitlements(ticket.ticket_id) if ticket else []
        event = ticket.event if ticket else None
        decision = match_ticket(credential, ticket, event, entitlements, today, expected_event_id)

    try:
        if decision.outcome is ScanOutcome.ACCEPTED:
            if not entitlement_store.claim_entitlement(decision.entitlement.entitlement_id, now):
                decision = ScanDecision(ScanOutcome.ALREADY_USED, "ALREADY_USED", decision.entitlement)

        entitlement_store.record_scan(
            result=decision.outcome.value,
            reason=decision.reason,
            ticket_id=ticket.ticket_id if ticket else None,
            staff_id=staff_id,
            event_id=expected_event_id or (ticket.event_id if ticket else None),
            scanned_at=now,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info(
        "Scan %s -> %s (%s)",
        credential.ticket_code if credential else "<unreadable>",
        decision.outcome.value,
        decision.reason,
    )

    attendance = None
    entitlement = None
    scanned_at = now
    if ticket is not None:
        # Committed: rows reload with the state the database settled on
        attendance = build_attendance_summary(entitlement_store.list_entitlements(ticket.ticket_id))
        if decision.entitlement is not None:
            entitlement = entitlement_store.get_entitlement(decision.entitlement.entitlement_id)
            if entitlement.used_at is not None:
                scanned_at = entitlement.used_at

    return ScanResult(
        outcome=decision.outcome,
        reason=decision.reason,
        scanned_at=scanned_at,
        ticket=ticket,
        entitlement=entitlement,
        attendance=attendance,
    )
