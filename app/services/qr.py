"""
Ticket QR payloads and check-in scan codes.

Both formats are plain, unsigned strings: anyone who knows an id can build a
valid-looking scan code. Rendering them as images is left to the client.
"""
import base64
import json
import re
import time
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.models.ticket import Ticket

ORDER_PREFIX = "ORDER"
TICKET_PREFIX = "TICKET"

_SCAN_CODE_RE = re.compile(r"^(ORDER|TICKET)-(\d+)$")


def build_ticket_payload(ticket_id: int, timestamp_ms: Optional[int] = None) -> str:
    """`base64(JSON{ticketId, timestamp})`, timestamp in epoch milliseconds."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    raw = json.dumps({"ticketId": ticket_id, "timestamp": timestamp_ms}, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def parse_ticket_payload(payload: str) -> dict:
    return json.loads(base64.b64decode(payload.encode("ascii")).decode("utf-8"))


def generate_qr_code(db: Session, ticket: Ticket) -> str:
    """Build a fresh payload for `ticket` and store it. The caller commits."""
    ticket.qr_code = build_ticket_payload(ticket.id)
    db.add(ticket)
    return ticket.qr_code


def order_scan_code(order_id: int) -> str:
    return f"{ORDER_PREFIX}-{order_id}"


def ticket_scan_code(ticket_id: int) -> str:
    return f"{TICKET_PREFIX}-{ticket_id}"


def parse_scan_code(code: str) -> Optional[Tuple[str, int]]:
    """Return `("order" | "ticket", id)` or None when `code` is not a scan code."""
    match = _SCAN_CODE_RE.match((code or "").strip())
    if not match:
        return None
    prefix, raw_id = match.groups()
    return prefix.lower(), int(raw_id)
