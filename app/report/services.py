# app/report/services.py
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import NothingToExport
from app.report.pdf import render_pdf, summary_lines, table_rows
from app.report.ranges import DATE_RANGE_LABELS, DateRange, local_zone, resolve_range
from app.ticket.services import StatusCounts, count_by_status, list_tickets_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportFile:
    filename: str
    content: bytes
    date_range: DateRange
    start: datetime
    end: datetime
    counts: StatusCounts

    @property
    def ticket_count(self) -> int:
        return self.counts.total


def report_filename(start: datetime, end: datetime) -> str:
    return f"ticket-report-{start:%Y-%m-%d}-{end:%Y-%m-%d}.pdf"


def export_report(db: Session, date_range: DateRange | str, now: datetime | None = None) -> ReportFile:
    settings = get_settings()
    tz = local_zone()
    date_range = DateRange(date_range)
    if now is None:
        now = datetime.now(tz)
    generated_at = now.astimezone(tz) if now.tzinfo else now.replace(tzinfo=tz)
    start, end = resolve_range(date_range, generated_at, tz)

    tickets = list_tickets_between(db, start, end)
    if not tickets:
        logger.info("No tickets to export for %s (%s - %s)", date_range.value, start, end)
        raise NothingToExport()

    counts = count_by_status(tickets)
    lines = summary_lines(DATE_RANGE_LABELS[date_range], start, end, generated_at, len(tickets), counts)
    rows = table_rows(tickets, tz, settings.REPORT_MOTIVE_MAX_CHARS)
    content = render_pdf(lines, rows)

    filename = report_filename(start, end)
    logger.info("Exported %d tickets to %s", len(tickets), filename)
    return ReportFile(filename, content, date_range, start, end, counts)
