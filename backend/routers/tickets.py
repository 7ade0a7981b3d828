from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from backend.models import TicketImport, TicketScan
from backend.security import SCOPE_TICKETS_IMPORT, StaffSession, require_scope
from database.db import get_all_tickets, get_ticket, import_tickets, scan_ticket

router = APIRouter()


class TicketImportBatch(BaseModel):
    tickets: list[TicketImport] | None = None


@router.post("/tickets/import", status_code=201)
def import_ticket_batch(
    body: list[TicketImport] | TicketImportBatch = Body(...),
    _session: StaffSession = Depends(require_scope(SCOPE_TICKETS_IMPORT)),
):
    tickets = body if isinstance(body, list) else body.tickets
    if not tickets:
        raise HTTPException(status_code=400, detail="No tickets provided")

    prepared = []
    for index, ticket in enumerate(tickets):
        transaction_id = (ticket.transactionId or "").strip()
        if not transaction_id:
            raise HTTPException(
                status_code=400,
                detail=f"Ticket at index {index}: transactionId is required",
            )
        data = ticket.model_dump(exclude_none=True)
        data["transactionId"] = transaction_id
        # the QR code usually is the transaction id itself
        data["qrCode"] = (ticket.qrCode or "").strip() or transaction_id
        prepared.append(data)

    return import_tickets(prepared)


@router.post("/tickets/scan")
def scan(payload: TicketScan):
    outcome, ticket = scan_ticket(payload.qrCode.strip())
    if outcome == "not_found":
        raise HTTPException(
            status_code=404,
            detail="Ticket not found. Please ensure the ticket data has been imported first.",
        )
    if outcome == "already_scanned":
        raise HTTPException(status_code=400, detail="Ticket already scanned")
    return ticket


@router.get("/tickets")
def tickets():
    return get_all_tickets()


@router.get("/tickets/{ticket_id}")
def ticket_detail(ticket_id: str):
    ticket = get_ticket(ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found.")
    return ticket
