import json
import unittest
from datetime import date, datetime

from verification_service.services.token_codec import (
    Credential,
    TokenCodec,
    format_local_date,
    parse_local_date,
)


class TestTokenCodec(unittest.TestCase):
    def setUp(self):
        self.codec = TokenCodec("unit-test-secret")
        self.credential = self.codec.encode(
            "6f1c2a9e-0000-4000-8000-000000000001",
            "6f1c2a9e-0000-4000-8000-0000000000e1",
            "6f1c2a9e-0000-4000-8000-0000000000a1",
            "ABCD-EFGH-JKLM",
            date(2026, 1, 2),
        )

    def test_round_trip_keeps_logical_fields(self):
        decoded = self.codec.decode(self.credential.to_json())
        self.assertIsNotNone(decoded)
        self.assertEqual(decoded.ticket_id, "6f1c2a9e-0000-4000-8000-000000000001")
        self.assertEqual(decoded.event_id, "6f1c2a9e-0000-4000-8000-0000000000e1")
        self.assertEqual(decoded.user_id, "6f1c2a9e-0000-4000-8000-0000000000a1")
        self.assertEqual(decoded.ticket_code, "ABCD-EFGH-JKLM")
        self.assertEqual(decoded.date, "2026-01-02")
        self.assertEqual(decoded.day, date(2026, 1, 2))
        self.assertTrue(self.codec.verify(decoded))

    def test_wire_format_uses_camel_case_keys(self):
        payload = json.loads(self.credential.to_json())
        self.assertEqual(
            set(payload),
            {"ticketId", "eventId", "userId", "date", "ticketCode", "nonce", "signature"},
        )
        self.assertEqual(len(payload["signature"]), 64)

    def test_nonce_is_fresh_per_encode(self):
        other = self.codec.encode("t", "e", "u", "CODE", date(2026, 1, 2))
        again = self.codec.encode("t", "e", "u", "CODE", date(2026, 1, 2))
        self.assertNotEqual(other.nonce, again.nonce)
        self.assertNotEqual(other.signature, again.signature)

    def test_any_single_character_mutation_fails(self):
        raw = self.credential.to_json()
        for i, ch in enumerate(raw):
            mutated = raw[:i] + chr(ord(ch) ^ 1) + raw[i + 1:]
            decoded = self.codec.decode(mutated)
            self.assertTrue(
                decoded is None or not self.codec.verify(decoded),
                f"mutation at index {i} still verified",
            )

    def test_other_secret_rejects(self):
        rotated = TokenCodec("rotated-secret")
        decoded = rotated.decode(self.credential.to_json())
        self.assertFalse(rotated.verify(decoded))

    def test_signature_of_wrong_length_is_not_verified(self):
        short = Credential(**{**self.credential.__dict__, "signature": "abc123"})
        self.assertFalse(self.codec.verify(short))
        unicode_sig = Credential(**{**self.credential.__dict__, "signature": "é" * 64})
        self.assertFalse(self.codec.verify(unicode_sig))

    def test_decode_rejects_malformed_input(self):
        raw = self.credential.to_json()
        payload = json.loads(raw)
        missing = dict(payload)
        del missing["nonce"]
        cases = [
            "",
            "not json",
            raw[: len(raw) // 2],
            "[1, 2, 3]",
            "null",
            json.dumps(missing),
            json.dumps({**payload, "ticketId": 42}),
            json.dumps({**payload, "date": "2026-1-2"}),
            json.dumps({**payload, "date": "2026-02-30"}),
            None,
            b"\xff\xfe",
        ]
        for case in cases:
            self.assertIsNone(self.codec.decode(case), repr(case))

    def test_decode_survives_deeply_nested_json(self):
        self.assertIsNone(self.codec.decode("[" * 200000))
        self.assertIsNone(self.codec.decode('{"a":' * 200000))

    def test_lone_surrogate_fields_are_rejected(self):
        payload = json.loads(self.credential.to_json())
        for key in ("nonce", "ticketCode", "signature"):
            raw = json.dumps({**payload, key: "\ud800" + payload[key]})
            self.assertIn("\\ud800", raw)
            self.assertIsNone(self.codec.decode(raw), key)

    def test_verify_is_false_for_unencodable_fields(self):
        bad_nonce = Credential(**{**self.credential.__dict__, "nonce": "\ud800"})
        self.assertFalse(self.codec.verify(bad_nonce))
        bad_sig = Credential(**{**self.credential.__dict__, "signature": "\udfff" * 64})
        self.assertFalse(self.codec.verify(bad_sig))

    def test_decode_accepts_bytes(self):
        decoded = self.codec.decode(self.credential.to_json().encode("utf-8"))
        self.assertTrue(self.codec.verify(decoded))

    def test_empty_secret_refused(self):
        with self.assertRaises(ValueError):
            TokenCodec("")


class TestLocalDates(unittest.TestCase):
    def test_format_plain_date(self):
        self.assertEqual(format_local_date(date(2026, 3, 9)), "2026-03-09")

    def test_format_naive_datetime_keeps_calendar_day(self):
        self.assertEqual(format_local_date(datetime(2026, 3, 9, 23, 30)), "2026-03-09")

    def test_parse(self):
        self.assertEqual(parse_local_date("2026-03-09"), date(2026, 3, 9))
        self.assertIsNone(parse_local_date("2026-3-9"))
        self.assertIsNone(parse_local_date("20260309"))
        self.assertIsNone(parse_local_date("2026-03-09T00:00:00Z"))
        self.assertIsNone(parse_local_date(None))


if __name__ == "__main__":
    unittest.main()
