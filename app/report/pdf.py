# app/report/pdf.py
from datetime import datetime, tzinfo
from io import BytesIO
from typing import Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.report.formatting import long_date, long_datetime, table_datetime, truncate
from app.ticket.models import Ticket
from app.ticket.schemas import TicketStatus
from app.ticket.services import StatusCounts

REPORT_TITLE = "Report Ticket"

TABLE_HEADER = ["Ticket", "Telefono", "Motivo", "Chi ha aperto", "Referente", "Stato", "Apertura", "Chiusura"]
COLUMN_WIDTHS = [w * mm for w in (20, 22, 40, 20, 20, 20, 20, 20)]

PDF_STATUS_LABELS = {
    TicketStatus.APERTO.value: "Aperto",
    TicketStatus.IN_LAVORAZIONE.value: "In Lavorazione",
    TicketStatus.CHIUSO.value: "Chiuso",
}

HEADER_BLUE = colors.Color(37 / 255, 99 / 255, 235 / 255)
ROW_ALT = colors.Color(248 / 255, 250 / 255, 252 / 255)
TEXT_DARK = colors.Color(33 / 255, 37 / 255, 41 / 255)
TEXT_MUTED = colors.Color(108 / 255, 117 / 255, 125 / 255)


def summary_lines(
    range_label: str,
    start: datetime,
    end: datetime,
    generated_at: datetime,
    total: int,
    counts: StatusCounts,
) -> list[str]:
    return [
        f"Periodo: {range_label}",
        f"Dal {long_date(start)} al {long_date(end)}",
        f"Generato il: {long_datetime(generated_at)}",
        f"Totale ticket: {total}",
        f"Aperti: {counts.aperto} | In Lavorazione: {counts.in_lavorazione} | Chiusi: {counts.chiuso}",
    ]


def table_rows(tickets: Sequence[Ticket], tz: tzinfo | None = None, motive_limit: int = 40) -> list[list[str]]:
    return [
        [
            ticket.label,
            ticket.telefono,
            truncate(ticket.motivo_ticket, motive_limit),
            ticket.chi_aperto or "-",
            ticket.referente_assistenza or "-",
            PDF_STATUS_LABELS.get(ticket.stato_ticket, ticket.stato_ticket),
            table_datetime(ticket.data_apertura, tz),
            table_datetime(ticket.data_chiusura, tz),
        ]
        for ticket in tickets
    ]


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Pagina i di N" once the page count is known."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.Color(150 / 255, 150 / 255, 150 / 255))
        self.drawCentredString(width / 2, 10 * mm, f"Pagina {self._pageNumber} di {total}")


def render_pdf(lines: list[str], rows: list[list[str]]) -> bytes:
    """Lay the report out in memory and return the finished document."""
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ReportTitle", parent=styles["Title"], fontSize=18, leading=22,
                                 alignment=0, textColor=TEXT_DARK, spaceAfter=4 * mm)
    line_style = ParagraphStyle("ReportLine", parent=styles["Normal"], fontSize=11, leading=15,
                                textColor=TEXT_MUTED)

    table = Table([TABLE_HEADER] + rows, colWidths=COLUMN_WIDTHS, repeatRows=1)
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALT]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 2 * mm / 1.5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2 * mm / 1.5),
        ("LEFTPADDING", (0, 0), (-1, -1), 2),
        ("RIGHTPADDING", (0, 0), (-1, -1), 2),
    ]))

    story = [Paragraph(REPORT_TITLE, title_style)]
    story.extend(Paragraph(_escape(line), line_style) for line in lines)
    story.append(Spacer(1, 5 * mm))
    story.append(table)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=18 * mm,
        title=REPORT_TITLE,
    )
    doc.build(story, canvasmaker=NumberedCanvas)
    return buffer.getvalue()


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
