"""
Entitlement Store
Reads and the one conditional write the scan path needs. SQLAlchemy errors
are not caught here; callers see them as storage faults.
"""

import uuid
from verification_service.extensions import db
from verification_service.models import Event, Ticket, TicketType, TicketDayEntitlement, ScanLog


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def get_ticket(ticket_id):
    key = _as_uuid(ticket_id)
    if key is None:
        return None
    return db.session.get(Ticket, key)


def get_ticket_by_code(ticket_code):
    if not ticket_code:
        return None
    return Ticket.query.filter_by(ticket_code=ticket_code.strip().upper()).first()


def find_ticket(code_or_id):
    """Staff search box: accepts either a ticket code or a ticket id."""
    return get_ticket_by_code(code_or_id) or get_ticket(code_or_id)


def get_event(event_id):
    key = _as_uuid(event_id)
    if key is None:
        return None
    return db.session.get(Event, key)


def get_ticket_type(ticket_type_id):
    key = _as_uuid(ticket_type_id)
    if key is None:
        return None
    return db.session.get(TicketType, key)


def list_entitlements(ticket_id):
    return (
        TicketDayEntitlement.query
        .filter_by(ticket_id=ticket_id)
        .order_by(TicketDayEntitlement.date.asc())
        .all()
    )


def get_entitlement(entitlement_id):
    return db.session.get(TicketDayEntitlement, entitlement_id)


def claim_entitlement(entitlement_id, used_at):
    """
    Flip one entitlement AVAILABLE -> USED as a single conditional UPDATE.
    Returns True only for the caller whose statement changed the row; a
    concurrent loser gets False. Does not commit.
    """
    updated = (
        TicketDayEntitlement.query
        .filter_by(entitlement_id=entitlement_id, status="AVAILABLE")
        .update({"status": "USED", "used_at": used_at}, synchronize_session=False)
    )
    return updated == 1


def record_scan(result, reason=None, ticket_id=None, staff_id=None, event_id=None, scanned_at=None):
    scan = ScanLog(
        ticket_id=_as_uuid(ticket_id) if ticket_id else None,
        staff_id=str(staff_id) if staff_id else None,
        event_id=_as_uuid(event_id) if event_id else None,
        result=result,
        reason=reason,
    )
    if scanned_at is not None:
        scan.scanned_at = scanned_at
    db.session.add(scan)
    return scan


def scan_history(ticket_id):
    return (
        ScanLog.query
        .filter_by(ticket_id=ticket_id)
        .order_by(ScanLog.scanned_at.asc())
        .all()
    )
