# tests/test_auth.py
import pytest

from app.auth import services as auth_service
from app.auth.models import User
from app.auth.schemas import Credentials, parse_credentials
from app.auth.services import AuthError, auth_error_message

EMAIL = "operatore@example.com"
PASSWORD = "segreto123"


def test_parse_credentials_reports_field_messages():
    credentials, errors = parse_credentials("non-una-email", "123")
    assert credentials is None
    assert errors == {
        "email": "Email non valida",
        "password": "La password deve avere almeno 6 caratteri",
    }


def test_parse_credentials_normalizes_email():
    credentials, errors = parse_credentials("  Operatore@Example.COM ", "segreto")
    assert errors == {}
    assert credentials.email == "operatore@example.com"


def test_sign_up_then_sign_in(db):
    user = auth_service.sign_up(db, Credentials(email=EMAIL, password=PASSWORD))
    assert user.hashed_password != PASSWORD
    assert auth_service.sign_in(db, Credentials(email=EMAIL, password=PASSWORD)).id == user.id


def test_duplicate_sign_up_is_typed(db):
    auth_service.sign_up(db, Credentials(email=EMAIL, password=PASSWORD))
    with pytest.raises(AuthError) as info:
        auth_service.sign_up(db, Credentials(email=EMAIL, password="altra-password"))
    assert info.value.code == AuthError.ALREADY_REGISTERED
    assert auth_error_message(info.value) == "Questa email è già registrata"


def test_wrong_password_is_typed(db):
    auth_service.sign_up(db, Credentials(email=EMAIL, password=PASSWORD))
    with pytest.raises(AuthError) as info:
        auth_service.sign_in(db, Credentials(email=EMAIL, password="sbagliata"))
    assert info.value.code == AuthError.INVALID_CREDENTIALS
    assert auth_error_message(info.value) == "Email o password non corretti"


def test_unknown_error_codes_show_raw_message():
    assert auth_error_message(AuthError("rate_limited", "Too many requests")) == "Too many requests"


def test_access_token_round_trip():
    token = auth_service.create_access_token("user-1")
    assert auth_service.decode_access_token(token) == "user-1"
    assert auth_service.decode_access_token(token + "x") is None


def test_dashboard_redirects_anonymous_users(anonymous_client):
    r = anonymous_client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"


def test_auth_page_redirects_signed_in_users(client):
    r = client.get("/auth", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_sign_up_toggle_renders_registration_form(anonymous_client):
    r = anonymous_client.get("/auth", params={"mode": "sign-up"})
    assert r.status_code == 200
    assert 'name="mode" value="sign-up"' in r.text


def test_invalid_form_never_reaches_the_store(anonymous_client, db):
    r = anonymous_client.post("/auth", data={"mode": "sign-up", "email": "x", "password": "1"})
    assert r.status_code == 422
    assert "Email non valida" in r.text
    assert "La password deve avere almeno 6 caratteri" in r.text
    assert db.query(User).count() == 0


def test_bad_credentials_show_localized_message(anonymous_client):
    anonymous_client.post("/auth", data={"mode": "sign-up", "email": EMAIL, "password": PASSWORD})
    anonymous_client.post("/auth/sign-out")

    r = anonymous_client.post("/auth", data={"mode": "sign-in", "email": EMAIL, "password": "sbagliata"})
    assert r.status_code == 401
    assert "Email o password non corretti" in r.text


def test_duplicate_registration_shows_localized_message(client):
    client.post("/auth/sign-out")
    r = client.post("/auth", data={"mode": "sign-up", "email": EMAIL, "password": PASSWORD})
    assert r.status_code == 409
    assert "Questa email è già registrata" in r.text


def test_sign_in_and_sign_out(anonymous_client):
    anonymous_client.post("/auth", data={"mode": "sign-up", "email": EMAIL, "password": PASSWORD})
    anonymous_client.post("/auth/sign-out")
    assert anonymous_client.get("/", follow_redirects=False).status_code == 303

    r = anonymous_client.post(
        "/auth", data={"mode": "sign-in", "email": EMAIL, "password": PASSWORD}, follow_redirects=False
    )
    assert r.status_code == 303
    page = anonymous_client.get("/")
    assert page.status_code == 200
    assert "Accesso effettuato" in page.text

    anonymous_client.post("/auth/sign-out")
    assert anonymous_client.get("/tickets").status_code == 401
