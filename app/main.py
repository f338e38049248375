# app/main.py
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from app.auth.routes import router as auth_router
from app.auth.session import LoginRequired
from app.core.config import get_settings
from app.core.database import Base, engine
from app.core.errors import register_exception_handlers
from app.core.events import EventBus
from app.core.logging import configure_logging
from app.report.routes import router as report_router
from app.ticket.routes import router as ticket_router
from app.ticket.views import router as dashboard_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESC,
    version=settings.APP_VERSION,
)
app.state.events = EventBus()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Flash notifications live in the signed session cookie
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY, same_site="lax")

register_exception_handlers(app)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/auth", status_code=status.HTTP_303_SEE_OTHER)


# Routers
app.include_router(auth_router)
app.include_router(ticket_router)
app.include_router(report_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
