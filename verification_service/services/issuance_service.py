"""
Issuance Service
Creates tickets at fulfillment time and fixes their per-day entitlements.
A ticket's entitlement set is written once and never grows afterwards.
"""

import logging
import re
import secrets
import uuid
from datetime import date, timedelta

from verification_service.extensions import db
from verification_service.models import Ticket, TicketDayEntitlement
from verification_service.services import entitlement_store
from verification_service.services.token_codec import parse_local_date

logger = logging.getLogger(__name__)

TICKET_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O, 1/I

# Spanish weekday initials used in ticket type names, mapped to date.weekday()
WEEKDAY_LETTERS = {"L": 0, "M": 1, "X": 2, "J": 3, "V": 4, "S": 5, "D": 6}

_TURNO_RE = re.compile(r"Turno\s+([LMDXVJS-]+)", re.IGNORECASE)
_LABEL_RE = re.compile(r"\b([LMDXVJS](?:-[LMDXVJS]){1,6})\b", re.IGNORECASE)

VALID_TRANSITIONS = {
    "ACTIVE": {"CANCELLED", "EXPIRED"},
    "CANCELLED": set(),
    "EXPIRED": set(),
}


class IssuanceError(Exception):
    def __init__(self, error_code, message):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


def generate_ticket_code():
    chars = [secrets.choice(TICKET_CODE_ALPHABET) for _ in range(12)]
    return "-".join("".join(chars[i:i + 4]) for i in range(0, 12, 4))


def days_between(start, end):
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def extract_days_label(name):
    """'Turno L-M-X' -> 'L-M-X'"""
    match = _TURNO_RE.search(name or "") or _LABEL_RE.search(name or "")
    return match.group(1).upper() if match else None


def weekdays_from_label(label):
    return {WEEKDAY_LETTERS[part] for part in label.split("-") if part in WEEKDAY_LETTERS}


def compute_valid_days(event, ticket_type):
    span = days_between(event.start_date, event.end_date)

    if ticket_type.is_package and ticket_type.package_days_count:
        return span[:ticket_type.package_days_count]

    if ticket_type.valid_days:
        days = set()
        for raw in ticket_type.valid_days:
            day = raw if isinstance(raw, date) else parse_local_date(raw)
            if day is not None and event.contains(day):
                days.add(day)
        return sorted(days)

    label = extract_days_label(ticket_type.name)
    if label:
        weekdays = weekdays_from_label(label)
        if weekdays:
            return [day for day in span if day.weekday() in weekdays]

    return span


def issue_entitlements(ticket):
    """Write the ticket's AVAILABLE rows. No-op if it already has any."""
    existing = entitlement_store.list_entitlements(ticket.ticket_id)
    if existing:
        return existing

    days = compute_valid_days(ticket.event, ticket.ticket_type)
    for day in days:
        db.session.add(TicketDayEntitlement(ticket_id=ticket.ticket_id, date=day, status="AVAILABLE"))
    db.session.flush()
    logger.info("Issued %d entitlements for ticket %s", len(days), ticket.ticket_code)
    return entitlement_store.list_entitlements(ticket.ticket_id)


def create_ticket(event_id, user_id, ticket_type_id, attendee_name=None, attendee_dni=None):
    """
    Called by order fulfillment once payment succeeds.
    Raises IssuanceError for unknown event/ticket type.
    """
    event = entitlement_store.get_event(event_id)
    if not event:
        raise IssuanceError("EVENT_NOT_FOUND", "The requested event could not be found.")

    ticket_type = entitlement_store.get_ticket_type(ticket_type_id)
    if not ticket_type or ticket_type.event_id != event.event_id:
        raise IssuanceError("TICKET_TYPE_NOT_FOUND", "Ticket type does not exist for this event.")

    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        raise IssuanceError("INVALID_USER", "user_id must be a UUID.")

    code = generate_ticket_code()
    while entitlement_store.get_ticket_by_code(code):
        code = generate_ticket_code()

    ticket = Ticket(
        ticket_code=code,
        event=event,
        user_id=user_uuid,
        ticket_type=ticket_type,
        attendee_name=attendee_name,
        attendee_dni=attendee_dni,
        status="ACTIVE",
    )
    db.session.add(ticket)
    db.session.flush()
    issue_entitlements(ticket)
    db.session.commit()
    return ticket


def update_ticket_status(ticket_id, new_status):
    """
    Enforces ticket status transitions:
        - ACTIVE -> CANCELLED: order refunded / cancelled
        - ACTIVE -> EXPIRED: event finished
    """
    ticket = entitlement_store.get_ticket(ticket_id)
    if not ticket:
        return None, "Ticket not found"

    allowed = VALID_TRANSITIONS.get(ticket.status, set())
    if new_status not in allowed:
        return None, f"Cannot transition from {ticket.status} to {new_status}"

    ticket.status = new_status
    db.session.commit()
    logger.info("Ticket %s is now %s", ticket.ticket_code, new_status)
    return ticket, None
