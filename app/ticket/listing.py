# app/ticket/listing.py
"""List view-model for the dashboard.

Holds the filter/search state and the last result set, and decides which
response is allowed to land: every read takes a sequence number and only
the latest issued one is applied. Reads are re-issued whenever a
``TicketsChanged`` event is published.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import StoreError
from app.core.events import EventBus, TicketsChanged
from app.ticket.models import Ticket
from app.ticket.schemas import StatusFilter
from app.ticket.services import count_by_status, list_tickets

logger = logging.getLogger(__name__)

EMPTY_NO_TICKETS = "Nessun ticket presente. Crea un nuovo ticket per iniziare"
EMPTY_NO_MATCH = "Nessun ticket corrisponde ai filtri selezionati"

Fetcher = Callable[[StatusFilter, str], Awaitable[list[Ticket]]]
UpdateHook = Callable[["TicketListController"], None]


class ListState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class FilterState:
    status_filter: StatusFilter = StatusFilter.ATTIVI
    search: str = ""

    @property
    def is_filtered(self) -> bool:
        return self.status_filter != StatusFilter.TUTTI or bool(self.search.strip())


class TicketListController:
    def __init__(
        self,
        fetch: Fetcher,
        events: EventBus | None = None,
        filters: FilterState | None = None,
        debounce: float | None = None,
        on_update: UpdateHook | None = None,
    ):
        self._fetch = fetch
        self.filters = filters or FilterState()
        if debounce is None:
            debounce = get_settings().SEARCH_DEBOUNCE_MS / 1000
        self.debounce = debounce
        self.on_update = on_update
        self.state = ListState.LOADING
        self.tickets: list[Ticket] = []
        self.error: Exception | None = None
        self.issued_seq = 0
        self.applied_seq = 0
        self._pending: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe = events.subscribe(TicketsChanged, self._on_tickets_changed) if events else None

    @property
    def empty_message(self) -> str:
        return EMPTY_NO_MATCH if self.filters.is_filtered else EMPTY_NO_TICKETS

    async def refresh(self) -> None:
        """Issue a read for the current filters and apply it if still latest."""
        self._loop = asyncio.get_running_loop()
        self.issued_seq += 1
        seq = self.issued_seq
        filters = self.filters
        if not self.tickets:
            self.state = ListState.LOADING

        try:
            result = await self._fetch(filters.status_filter, filters.search)
        except Exception as exc:
            if seq != self.issued_seq:
                return
            logger.warning("Ticket list read #%d failed: %s", seq, exc)
            self.applied_seq = seq
            self.error = exc
            self.state = ListState.ERROR
            self._notify()
            raise

        if seq != self.issued_seq:
            logger.debug("Dropping stale ticket list response #%d (latest #%d)", seq, self.issued_seq)
            return
        self.applied_seq = seq
        self.error = None
        self.tickets = result
        self.state = ListState.READY if result else ListState.EMPTY
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

    async def apply(self, status_filter: StatusFilter | str | None = None, search: str | None = None) -> None:
        """Update the filters and refresh after the debounce delay.

        A newer call cancels a pending one that has not started its read yet.
        """
        self.filters = FilterState(
            status_filter=StatusFilter(status_filter) if status_filter is not None else self.filters.status_filter,
            search=search if search is not None else self.filters.search,
        )
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        pending = self._pending = asyncio.create_task(asyncio.sleep(self.debounce))
        try:
            await pending
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return
        await self.refresh()

    def _on_tickets_changed(self, event: TicketsChanged) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        logger.debug("Refreshing ticket list after %s of %s", event.action, event.ticket_id)
        self._loop.call_soon_threadsafe(self._spawn_refresh)

    def _spawn_refresh(self) -> None:
        # bursts of changes collapse into one read through the debounce
        task = asyncio.ensure_future(self.apply())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        task.add_done_callback(_consume_error)

    async def wait_idle(self) -> None:
        """Wait for event-triggered refreshes that are still running."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        for task in list(self._inflight):
            task.cancel()


def store_fetcher(db: Session) -> Fetcher:
    """Run ``list_tickets`` against ``db`` off the event loop."""

    async def fetch(status_filter: StatusFilter, search: str) -> list[Ticket]:
        return await run_in_threadpool(list_tickets, db, status_filter, search)

    return fetch


def session_fetcher() -> Fetcher:
    """Like ``store_fetcher`` but each read runs in a fresh session."""

    def read(status_filter: StatusFilter, search: str) -> list[Ticket]:
        with SessionLocal() as db:
            tickets = list_tickets(db, status_filter, search)
            db.expunge_all()
            return tickets

    async def fetch(status_filter: StatusFilter, search: str) -> list[Ticket]:
        return await run_in_threadpool(read, status_filter, search)

    return fetch


def _consume_error(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.warning("Background ticket list refresh failed: %s", task.exception())


async def ticket_change_stream(
    events: EventBus,
    filters: FilterState,
    is_disconnected: Callable[[], Awaitable[bool]],
    debounce: float | None = None,
    keepalive: float | None = None,
) -> AsyncIterator[str]:
    """Server-sent events telling a dashboard its list is out of date.

    A controller reading through fresh sessions follows ``TicketsChanged`` and
    re-reads the list for ``filters``; each applied read is pushed as a
    ``tickets`` event carrying the new sequence number and counts.
    """
    if keepalive is None:
        keepalive = get_settings().STREAM_KEEPALIVE_SECONDS
    updates: asyncio.Queue[dict] = asyncio.Queue()
    controller = TicketListController(session_fetcher(), events=events, filters=filters, debounce=debounce)
    try:
        try:
            await controller.refresh()
        except StoreError as exc:
            logger.warning("Initial ticket stream read failed: %s", exc.message)
        controller.on_update = lambda c: updates.put_nowait(_stream_payload(c))
        yield _sse("ready", _stream_payload(controller))

        while not await is_disconnected():
            try:
                payload = await asyncio.wait_for(updates.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield _sse("tickets", payload)
    finally:
        controller.close()


def _stream_payload(controller: TicketListController) -> dict:
    counts = count_by_status(controller.tickets)
    return {
        "seq": controller.applied_seq,
        "state": controller.state.value,
        "attivi": counts.attivi,
        "in_lavorazione": counts.in_lavorazione,
        "totale": counts.total,
    }


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"
