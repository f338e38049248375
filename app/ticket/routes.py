# app/ticket/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.auth.session import require_api_user
from app.core.database import get_db
from app.core.events import EventBus, get_event_bus
from app.ticket.schemas import StatusFilter, TicketCreate, TicketOut, TicketStatusUpdate
from app.ticket import services as ticket_service
router = APIRouter(prefix="/tickets", tags=["Tickets"], dependencies=[Depends(require_api_user)])


@router.post("", response_model=TicketOut, status_code=201)
def create(
    ticket: TicketCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
):
    return ticket_service.create_ticket(db, ticket, events)


@router.get("", response_model=list[TicketOut])
def list_all(
    stato: StatusFilter = Query(default=StatusFilter.ATTIVI, description="tutti, attivi or a ticket status"),
    q: str = Query(default="", description="Search phone, reason or id"),
    db: Session = Depends(get_db),
):
    return ticket_service.list_tickets(db, stato, q)


@router.get("/{ticket_id}", response_model=TicketOut)
def get(ticket_id: str, db: Session = Depends(get_db)):
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.patch("/{ticket_id}/status", response_model=TicketOut)
def update_status(
    ticket_id: str,
    payload: TicketStatusUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
):
    return ticket_service.update_ticket_status(db, ticket_id, payload.stato_ticket, events)
