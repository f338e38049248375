# app/ticket/views.py
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.auth.models import User
from app.auth.session import require_user
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import AppError, StoreError
from app.core.events import EventBus, get_event_bus
from app.core.notifications import notify, notify_error
from app.core.templates import render_template
from app.report.formatting import medium_datetime, short_date
from app.report.ranges import DATE_RANGE_LABELS, DEFAULT_RANGE, local_zone
from app.ticket import services as ticket_service
from app.ticket.listing import (
    FilterState,
    ListState,
    TicketListController,
    store_fetcher,
    ticket_change_stream,
)
from app.ticket.schemas import (
    FILTER_OPTIONS,
    REQUIRED_FIELDS_MESSAGE,
    STATUS_LABELS,
    StatusFilter,
    TicketCreate,
    TicketStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])

def _dashboard_url(filters: FilterState) -> str:
    return "/?" + urlencode({"stato": filters.status_filter.value, "q": filters.search})


def _list_context(controller: TicketListController) -> dict:
    settings = get_settings()
    tz = local_zone()
    return {
        "list": controller,
        "counts": ticket_service.count_by_status(controller.tickets),
        "list_states": ListState,
        "placeholder_rows": settings.LIST_PLACEHOLDER_ROWS,
        "statuses": list(TicketStatus),
        "status_labels": STATUS_LABELS,
        "fmt_medium": lambda value: medium_datetime(value, tz),
        "fmt_short": lambda value: short_date(value, tz),
    }


async def _load_list(db: Session, filters: FilterState) -> TicketListController:
    controller = TicketListController(store_fetcher(db), filters=filters)
    try:
        await controller.refresh()
    except StoreError as exc:
        # state is ERROR; the partial renders the failure message
        logger.warning("Ticket list unavailable: %s", exc.message)
    finally:
        controller.close()
    return controller


async def _render_dashboard(
    request: Request,
    db: Session,
    filters: FilterState,
    form: dict | None = None,
    form_errors: dict | None = None,
    form_open: bool = False,
    status_code: int = 200,
):
    controller = await _load_list(db, filters)
    context = {
        "page_title": "Ticket",
        "filters": filters,
        "filter_options": FILTER_OPTIONS,
        "form": form or {},
        "form_errors": form_errors or {},
        "form_open": form_open,
        "date_ranges": DATE_RANGE_LABELS,
        "default_range": DEFAULT_RANGE,
        "debounce_ms": get_settings().SEARCH_DEBOUNCE_MS,
    }
    context.update(_list_context(controller))
    return render_template(request, "dashboard.html", context, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    stato: StatusFilter = Query(default=StatusFilter.ATTIVI),
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return await _render_dashboard(request, db, FilterState(stato, q))


@router.get("/partials/tickets", response_class=HTMLResponse)
async def ticket_list_partial(
    request: Request,
    stato: StatusFilter = Query(default=StatusFilter.ATTIVI),
    q: str = Query(default=""),
    seq: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    controller = await _load_list(db, FilterState(stato, q))
    response = render_template(request, "_ticket_list.html", _list_context(controller), consume_notifications=False)
    response.headers["X-Request-Seq"] = str(seq)
    return response


@router.get("/events/tickets")
async def ticket_events(
    request: Request,
    stato: StatusFilter = Query(default=StatusFilter.ATTIVI),
    q: str = Query(default=""),
    events: EventBus = Depends(get_event_bus),
    user: User = Depends(require_user),
):
    stream = ticket_change_stream(events, FilterState(stato, q), request.is_disconnected)
    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/tickets/new", response_class=HTMLResponse)
async def create_ticket(
    request: Request,
    numero_ticket: str = Form(""),
    telefono: str = Form(""),
    motivo_ticket: str = Form(""),
    chi_aperto: str = Form(""),
    referente_assistenza: str = Form(""),
    numero_pm: str = Form(""),
    stato: StatusFilter = Form(StatusFilter.ATTIVI),
    q: str = Form(""),
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    user: User = Depends(require_user),
):
    filters = FilterState(stato, q)
    form = {
        "numero_ticket": numero_ticket,
        "telefono": telefono,
        "motivo_ticket": motivo_ticket,
        "chi_aperto": chi_aperto,
        "referente_assistenza": referente_assistenza,
        "numero_pm": numero_pm,
    }

    try:
        payload = TicketCreate(**form)
    except ValidationError as exc:
        errors = {str(e["loc"][0]): "Campo obbligatorio" for e in exc.errors() if e["loc"]}
        notify_error(request, REQUIRED_FIELDS_MESSAGE)
        return await _render_dashboard(
            request, db, filters, form, errors, form_open=True,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    try:
        await run_in_threadpool(ticket_service.create_ticket, db, payload, events)
    except AppError as exc:
        notify_error(request, "Impossibile creare il ticket")
        return await _render_dashboard(request, db, filters, form, form_open=True, status_code=exc.status_code)

    notify(request, "Ticket creato", "Il ticket è stato creato con successo")
    return RedirectResponse(_dashboard_url(filters), status_code=status.HTTP_303_SEE_OTHER)


@router.post("/tickets/{ticket_id}/status")
def change_status(
    request: Request,
    ticket_id: str,
    stato_ticket: TicketStatus = Form(...),
    stato: StatusFilter = Form(StatusFilter.ATTIVI),
    q: str = Form(""),
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    user: User = Depends(require_user),
):
    try:
        ticket_service.update_ticket_status(db, ticket_id, stato_ticket, events)
    except AppError as exc:
        logger.warning("Status change for %s rejected: %s", ticket_id, exc.message)
        notify_error(request, "Impossibile aggiornare lo stato del ticket")
    return RedirectResponse(_dashboard_url(FilterState(stato, q)), status_code=status.HTTP_303_SEE_OTHER)
