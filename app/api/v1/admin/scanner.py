from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.schemas.order import Order as OrderSchema
from app.schemas.ticket import AdminTicket
from app.schemas.scanner import (
    ScanRequest,
    ScanResult,
    TicketCheckInResponse,
    OrderCheckInResponse,
)
from app.services import checkin

router = APIRouter(prefix="/admin/scanner", tags=["Admin - Scanner"])


@router.post("/resolve", response_model=ScanResult)
def resolve_code(
    data: ScanRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Look up the order or ticket behind a scanned `ORDER-<id>` / `TICKET-<id>` code."""
    resolved = checkin.resolve_scan_code(db, data.code).unwrap()
    if resolved["type"] == "order":
        entity = OrderSchema.model_validate(resolved["entity"])
    else:
        entity = AdminTicket.model_validate(resolved["entity"])
    return ScanResult(type=resolved["type"], entity=entity)


@router.post("/tickets/{ticket_id}/use", response_model=TicketCheckInResponse)
def use_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    data = checkin.mark_ticket_used(db, ticket_id).unwrap()
    message = "Ticket checked in" if data["changed"] else "Ticket was already used"
    return TicketCheckInResponse(**data, message=message)


@router.post("/orders/{order_id}/use", response_model=OrderCheckInResponse)
def use_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    data = checkin.mark_all_tickets_in_order_used(db, order_id).unwrap()
    return OrderCheckInResponse(**data, message=f"{data['marked']} ticket(s) checked in")
