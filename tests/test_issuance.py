import re
import unittest
import uuid
from datetime import date

from verification_service.models import Event, TicketType
from verification_service.services import issuance_service
from verification_service.services.issuance_service import (
    compute_valid_days,
    extract_days_label,
    generate_ticket_code,
)
from tests.helpers import AppTestCase


def _event(start, end):
    return Event(name="Swim Classes", start_date=start, end_date=end)


class TestComputeValidDays(unittest.TestCase):
    def test_full_span_by_default(self):
        days = compute_valid_days(_event(date(2026, 1, 1), date(2026, 1, 3)), TicketType(name="General"))
        self.assertEqual(days, [date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3)])

    def test_package_takes_first_n_days(self):
        ticket_type = TicketType(name="2-day pass", is_package=True, package_days_count=2)
        days = compute_valid_days(_event(date(2026, 1, 1), date(2026, 1, 3)), ticket_type)
        self.assertEqual(days, [date(2026, 1, 1), date(2026, 1, 2)])

    def test_explicit_valid_days_sorted_and_clipped_to_event(self):
        ticket_type = TicketType(name="Pick days", valid_days=["2026-01-03", "2026-01-01", "2026-01-01", "2026-02-10"])
        days = compute_valid_days(_event(date(2026, 1, 1), date(2026, 1, 3)), ticket_type)
        self.assertEqual(days, [date(2026, 1, 1), date(2026, 1, 3)])

    def test_weekday_label(self):
        # 2026-01-05 is a Monday
        ticket_type = TicketType(name="Turno L-X")
        days = compute_valid_days(_event(date(2026, 1, 5), date(2026, 1, 14)), ticket_type)
        self.assertEqual(days, [date(2026, 1, 5), date(2026, 1, 7), date(2026, 1, 12), date(2026, 1, 14)])

    def test_extract_days_label(self):
        self.assertEqual(extract_days_label("Turno l-m-x"), "L-M-X")
        self.assertEqual(extract_days_label("Clases M-J"), "M-J")
        self.assertIsNone(extract_days_label("General"))

    def test_ticket_code_format(self):
        code = generate_ticket_code()
        self.assertRegex(code, r"^[A-HJ-NP-Z2-9]{4}-[A-HJ-NP-Z2-9]{4}-[A-HJ-NP-Z2-9]{4}$")
        self.assertIsNone(re.search(r"[01IO]", code))


class TestIssuance(AppTestCase):
    def test_create_ticket_issues_entitlements_once(self):
        event = self.make_event()
        ticket_type = self.make_ticket_type(event, "2-day pass", is_package=True, package_days_count=2)
        ticket = self.make_ticket(event, ticket_type)

        self.assertEqual(ticket.status, "ACTIVE")
        rows = issuance_service.issue_entitlements(ticket)
        self.assertEqual([r.date for r in rows], [date(2026, 1, 1), date(2026, 1, 2)])
        self.assertTrue(all(r.status == "AVAILABLE" for r in rows))

        # Re-issuing never grows the set
        again = issuance_service.issue_entitlements(ticket)
        self.assertEqual(len(again), 2)

    def test_create_ticket_rejects_foreign_ticket_type(self):
        event = self.make_event()
        other = self.make_event(name="Other")
        ticket_type = self.make_ticket_type(other)
        with self.assertRaises(issuance_service.IssuanceError) as ctx:
            issuance_service.create_ticket(event.event_id, uuid.uuid4(), ticket_type.ticket_type_id)
        self.assertEqual(ctx.exception.error_code, "TICKET_TYPE_NOT_FOUND")

    def test_status_transitions(self):
        event = self.make_event()
        ticket = self.make_ticket(event, self.make_ticket_type(event))

        updated, error = issuance_service.update_ticket_status(ticket.ticket_id, "CANCELLED")
        self.assertIsNone(error)
        self.assertEqual(updated.status, "CANCELLED")

        updated, error = issuance_service.update_ticket_status(ticket.ticket_id, "ACTIVE")
        self.assertIsNone(updated)
        self.assertEqual(error, "Cannot transition from CANCELLED to ACTIVE")

        _, error = issuance_service.update_ticket_status(uuid.uuid4(), "CANCELLED")
        self.assertEqual(error, "Ticket not found")


if __name__ == "__main__":
    unittest.main()
