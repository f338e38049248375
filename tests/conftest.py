# tests/conftest.py
import os
from datetime import datetime, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_tickets.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("TIMEZONE", "Europe/Rome")

from app.auth.models import User  # noqa: E402
from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.ticket.models import Ticket  # noqa: E402

EMAIL = "operatore@example.com"
PASSWORD = "segreto123"


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Ticket))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def anonymous_client() -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as client:
        r = client.post(
            "/auth",
            data={"mode": "sign-up", "email": EMAIL, "password": PASSWORD},
            follow_redirects=False,
        )
        assert r.status_code == 303, r.text
        yield client


@pytest.fixture
def add_ticket(db):
    """Insert a ticket directly in the store with an explicit opening time."""

    def _add(motivo="Problema", telefono="333 1234567", stato="aperto", opened=None, **extra):
        ticket = Ticket(
            motivo_ticket=motivo,
            telefono=telefono,
            stato_ticket=stato,
            data_apertura=opened or datetime.now(timezone.utc),
            **extra,
        )
        db.add(ticket)
        db.commit()
        db.refresh(ticket)
        return ticket

    return _add
