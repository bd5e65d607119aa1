import os
import tempfile
import unittest
import uuid
from datetime import date

from flask_jwt_extended import create_access_token

from verification_service.app import create_app
from verification_service.extensions import db
from verification_service.models import Event, TicketType, TicketDayEntitlement
from verification_service.services import issuance_service

JWT_TEST_SECRET = "test-jwt-secret-0123456789abcdef0123456789"
QR_TEST_SECRET = "test-qr-secret"


class AppTestCase(unittest.TestCase):
    """Fresh app + SQLite file database per test."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, "verification_test.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{self.db_path}",
            "JWT_SECRET_KEY": JWT_TEST_SECRET,
            "QR_SECRET": QR_TEST_SECRET,
            "SCAN_TIMEZONE": None,
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()
        self.codec = self.app.extensions["token_codec"]

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
        self.ctx.pop()
        self.tmpdir.cleanup()

    # --- seeding --------------------------------------------------------
    def make_event(self, start=date(2026, 1, 1), end=date(2026, 1, 3), name="Summer Festival"):
        event = Event(name=name, start_date=start, end_date=end)
        db.session.add(event)
        db.session.commit()
        return event

    def make_ticket_type(self, event, name="General", is_package=False, package_days_count=None, valid_days=None):
        ticket_type = TicketType(
            event_id=event.event_id,
            name=name,
            is_package=is_package,
            package_days_count=package_days_count,
            valid_days=valid_days,
        )
        db.session.add(ticket_type)
        db.session.commit()
        return ticket_type

    def make_ticket(self, event, ticket_type, user_id=None):
        return issuance_service.create_ticket(
            event_id=event.event_id,
            user_id=user_id or uuid.uuid4(),
            ticket_type_id=ticket_type.ticket_type_id,
            attendee_name="Ana Torres",
            attendee_dni="45871236",
        )

    def add_entitlement(self, ticket, day, status="AVAILABLE"):
        row = TicketDayEntitlement(ticket_id=ticket.ticket_id, date=day, status=status)
        db.session.add(row)
        db.session.commit()
        return row

    def qr_for(self, ticket, on):
        return self.codec.encode(
            ticket.ticket_id, ticket.event_id, ticket.user_id, ticket.ticket_code, on
        ).to_json()

    def entitlement_on(self, ticket, day):
        db.session.expire_all()
        return TicketDayEntitlement.query.filter_by(ticket_id=ticket.ticket_id, date=day).first()

    # --- auth -----------------------------------------------------------
    def auth_headers(self, identity="staff-1", role="STAFF"):
        token = create_access_token(identity=str(identity), additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
