"""
Token Codec
Signed per-day ticket credentials carried in the QR code.

Wire format is compact JSON:
    {"ticketId", "eventId", "userId", "date", "ticketCode", "nonce", "signature"}
where signature = hex(HMAC-SHA256(secret, "ticketId:eventId:userId:date:ticketCode:nonce")).
The codec never touches the database; it is pure given its secret.
"""

import hashlib
import hmac
import json
import re
import secrets
from dataclasses import dataclass, replace
from datetime import date, datetime

DATE_FORMAT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Wire key -> attribute name, in canonical signing order
_FIELDS = (
    ("ticketId", "ticket_id"),
    ("eventId", "event_id"),
    ("userId", "user_id"),
    ("date", "date"),
    ("ticketCode", "ticket_code"),
    ("nonce", "nonce"),
)


def format_local_date(value) -> str:
    """Calendar day as YYYY-MM-DD in local time (never shifted to UTC)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        value = value.date()
    return value.isoformat()


def parse_local_date(text):
    """Parse a YYYY-MM-DD string into a date; None if it is not one."""
    if not isinstance(text, str) or not DATE_FORMAT_RE.match(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class Credential:
    ticket_id: str
    event_id: str
    user_id: str
    date: str
    ticket_code: str
    nonce: str
    signature: str = ""

    @property
    def day(self):
        return parse_local_date(self.date)

    def canonical(self) -> str:
        return ":".join(getattr(self, attr) for _, attr in _FIELDS)

    def to_dict(self) -> dict:
        data = {key: getattr(self, attr) for key, attr in _FIELDS}
        data["signature"] = self.signature
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


class TokenCodec:
    """HMAC signer/verifier bound to one secret key.

    Rotating the key invalidates every credential issued under the old one.
    """

    def __init__(self, secret):
        if not secret:
            raise ValueError("TokenCodec requires a non-empty secret")
        self._key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)

    def sign(self, credential: Credential) -> str:
        return hmac.new(
            self._key,
            credential.canonical().encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def encode(self, ticket_id, event_id, user_id, ticket_code, on) -> Credential:
        unsigned = Credential(
            ticket_id=str(ticket_id),
            event_id=str(event_id),
            user_id=str(user_id),
            date=format_local_date(on),
            ticket_code=ticket_code,
            nonce=secrets.token_hex(8),
        )
        return replace(unsigned, signature=self.sign(unsigned))

    @staticmethod
    def decode(raw_text):
        """Parse scanned text. Returns None for anything that is not a complete credential."""
        if isinstance(raw_text, bytes):
            try:
                raw_text = raw_text.decode("utf-8")
            except UnicodeDecodeError:
                return None
        if not isinstance(raw_text, str):
            return None
        try:
            payload = json.loads(raw_text)
        except (ValueError, RecursionError):
            return None
        if not isinstance(payload, dict):
            return None

        values = {}
        for key, attr in _FIELDS + (("signature", "signature"),):
            value = payload.get(key)
            if not isinstance(value, str) or not value:
                return None
            # \ud800-style escapes decode to lone surrogates
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                return None
            values[attr] = value

        if parse_local_date(values["date"]) is None:
            return None
        return Credential(**values)

    def verify(self, credential: Credential) -> bool:
        try:
            expected = self.sign(credential).encode("utf-8")
            received = credential.signature.encode("utf-8")
        except UnicodeEncodeError:
            return False
        # compare_digest returns False on length mismatch
        return hmac.compare_digest(received, expected)
