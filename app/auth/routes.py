# app/auth/routes.py
import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.auth import services as auth_service
from app.auth.schemas import parse_credentials
from app.auth.services import AuthError, auth_error_message
from app.auth.session import AuthSession, get_auth_session
from app.core.database import get_db
from app.core.errors import StoreError
from app.core.notifications import notify, notify_error
from app.core.templates import render_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _render_form(request: Request, mode: str, email: str = "", errors: dict | None = None, status_code: int = 200):
    return render_template(
        request,
        "auth.html",
        {
            "page_title": "Accedi" if mode == "sign-in" else "Registrati",
            "mode": mode,
            "email": email,
            "errors": errors or {},
        },
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
def auth_page(request: Request, mode: str = "sign-in", auth: AuthSession = Depends(get_auth_session)):
    if auth.is_authenticated:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    return _render_form(request, "sign-up" if mode == "sign-up" else "sign-in")


@router.post("", response_class=HTMLResponse)
def submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    mode: str = Form("sign-in"),
    db: Session = Depends(get_db),
    auth: AuthSession = Depends(get_auth_session),
):
    mode = "sign-up" if mode == "sign-up" else "sign-in"
    credentials, errors = parse_credentials(email, password)
    if credentials is None:
        return _render_form(request, mode, email, errors, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

    try:
        if mode == "sign-in":
            user = auth_service.sign_in(db, credentials)
        else:
            user = auth_service.sign_up(db, credentials)
    except AuthError as exc:
        notify_error(request, auth_error_message(exc))
        return _render_form(request, mode, email, status_code=exc.status_code)
    except StoreError as exc:
        notify_error(request, exc.message)
        return _render_form(request, mode, email, status_code=exc.status_code)

    if mode == "sign-in":
        notify(request, "Accesso effettuato", "Benvenuto nel sistema di gestione ticket")
    else:
        notify(request, "Registrazione completata", "Account creato, benvenuto nel sistema di gestione ticket")
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    auth.establish(response, user)
    return response


@router.post("/sign-out")
def sign_out(request: Request, auth: AuthSession = Depends(get_auth_session)):
    response = RedirectResponse("/auth", status_code=status.HTTP_303_SEE_OTHER)
    if auth.user is not None:
        logger.info("User %s signed out", auth.user.id)
    auth.clear(response)
    return response
