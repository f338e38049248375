# app/core/templates.py
from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from app.core.config import get_settings
from app.core.notifications import pop_notifications

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_template(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
    consume_notifications: bool = True,
):
    """Return a TemplateResponse with the shared layout context."""
    settings = get_settings()
    base_context: dict[str, Any] = {
        "app_name": settings.APP_NAME,
        "page_title": "",
        "notifications": pop_notifications(request) if consume_notifications else [],
        "user": getattr(request.state, "user", None),
    }
    if context:
        base_context.update(context)
    return templates.TemplateResponse(request, template_name, base_context, status_code=status_code)
