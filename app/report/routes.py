# app/report/routes.py
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from app.auth.models import User
from app.auth.session import require_user
from app.core.database import get_db
from app.core.errors import NothingToExport
from app.core.notifications import notify, notify_error
from app.report.ranges import DEFAULT_RANGE, DateRange
from app.report.services import export_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/export")
def export(
    request: Request,
    date_range: DateRange = Query(default=DEFAULT_RANGE, alias="range"),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    try:
        report = export_report(db, date_range)
    except NothingToExport as exc:
        notify(request, "Nessun ticket", exc.message, "destructive")
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    except Exception:
        logger.exception("Error exporting PDF for %s", date_range.value)
        notify_error(request, "Impossibile generare il PDF")
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    notify(request, "PDF generato", f"Esportati {report.ticket_count} ticket")
    return Response(
        content=report.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
