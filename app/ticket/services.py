# app/ticket/services.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreError, TicketNotFound
from app.core.events import EventBus, TicketsChanged
from app.ticket.models import Ticket
from app.ticket.schemas import ACTIVE_STATUSES, StatusFilter, TicketCreate, TicketStatus

logger = logging.getLogger(__name__)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _to_store_instant(value: datetime) -> datetime:
    # SQLite drops tzinfo when binding; bind every bound in UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def list_tickets(
    db: Session,
    status_filter: StatusFilter | str = StatusFilter.ATTIVI,
    search: str = "",
) -> list[Ticket]:
    status_filter = StatusFilter(status_filter)
    query = db.query(Ticket)

    if status_filter == StatusFilter.ATTIVI:
        query = query.filter(Ticket.stato_ticket.in_([s.value for s in ACTIVE_STATUSES]))
    elif status_filter != StatusFilter.TUTTI:
        query = query.filter(Ticket.stato_ticket == status_filter.value)

    search = (search or "").strip()
    if search:
        pattern = _like_pattern(search)
        query = query.filter(
            or_(
                Ticket.telefono.ilike(pattern, escape="\\"),
                Ticket.motivo_ticket.ilike(pattern, escape="\\"),
                Ticket.id.ilike(pattern, escape="\\"),
            )
        )

    try:
        return query.order_by(Ticket.data_apertura.desc(), Ticket.id.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list tickets (filter=%s)", status_filter.value)
        raise StoreError() from exc


def list_tickets_between(db: Session, start: datetime, end: datetime) -> list[Ticket]:
    try:
        return (
            db.query(Ticket)
            .filter(Ticket.data_apertura >= _to_store_instant(start))
            .filter(Ticket.data_apertura <= _to_store_instant(end))
            .order_by(Ticket.data_apertura.desc(), Ticket.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to list tickets between %s and %s", start, end)
        raise StoreError() from exc


def get_ticket(db: Session, ticket_id: str) -> Ticket | None:
    return db.query(Ticket).filter(Ticket.id == ticket_id).first()


def create_ticket(db: Session, payload: TicketCreate, events: EventBus | None = None) -> Ticket:
    db_ticket = Ticket(**payload.insert_values())
    try:
        db.add(db_ticket)
        db.commit()
        db.refresh(db_ticket)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create ticket")
        raise StoreError("Impossibile creare il ticket") from exc

    logger.info("Created ticket %s", db_ticket.id)
    if events is not None:
        events.publish(TicketsChanged(db_ticket.id, "created"))
    return db_ticket


def update_ticket_status(
    db: Session,
    ticket_id: str,
    status: TicketStatus | str,
    events: EventBus | None = None,
) -> Ticket:
    status = TicketStatus(status)
    try:
        db_ticket = get_ticket(db, ticket_id)
        if not db_ticket:
            raise TicketNotFound()
        db_ticket.stato_ticket = status.value
        db.commit()
        db.refresh(db_ticket)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update ticket %s", ticket_id)
        raise StoreError("Impossibile aggiornare lo stato del ticket") from exc

    logger.info("Ticket %s moved to %s", ticket_id, status.value)
    if events is not None:
        events.publish(TicketsChanged(ticket_id, "status_updated"))
    return db_ticket


@dataclass(frozen=True)
class StatusCounts:
    aperto: int = 0
    in_lavorazione: int = 0
    chiuso: int = 0

    @property
    def total(self) -> int:
        return self.aperto + self.in_lavorazione + self.chiuso

    @property
    def attivi(self) -> int:
        return self.aperto + self.in_lavorazione


def count_by_status(tickets: Iterable[Ticket]) -> StatusCounts:
    counts = {status.value: 0 for status in TicketStatus}
    for ticket in tickets:
        counts[ticket.stato_ticket] = counts.get(ticket.stato_ticket, 0) + 1
    return StatusCounts(
        aperto=counts[TicketStatus.APERTO.value],
        in_lavorazione=counts[TicketStatus.IN_LAVORAZIONE.value],
        chiuso=counts[TicketStatus.CHIUSO.value],
    )
