from verification_service.models.event import Event, TicketType
from verification_service.models.ticket import Ticket
from verification_service.models.entitlement import TicketDayEntitlement
from verification_service.models.scan_log import ScanLog

__all__ = ["Event", "TicketType", "Ticket", "TicketDayEntitlement", "ScanLog"]
