# app/auth/session.py
from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.auth.models import User
from app.auth.services import create_access_token, decode_access_token, get_user
from app.core.config import get_settings
from app.core.database import get_db


class LoginRequired(Exception):
    """Raised by HTML routes when no user is signed in."""


class AuthSession:
    """The signed-in user for the current request.

    ``resolve`` reads the access-token cookie, ``establish`` issues one after
    sign-in or sign-up, and ``clear`` drops it on sign-out.
    """

    def __init__(self, request: Request, db: Session):
        self.request = request
        self.db = db
        self.user: User | None = None
        self.cookie_name = get_settings().SESSION_COOKIE

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def resolve(self) -> "AuthSession":
        token = self.request.cookies.get(self.cookie_name)
        user_id = decode_access_token(token) if token else None
        self.user = get_user(self.db, user_id) if user_id else None
        self.request.state.user = self.user
        return self

    def establish(self, response: Response, user: User) -> None:
        settings = get_settings()
        response.set_cookie(
            self.cookie_name,
            create_access_token(user.id),
            max_age=settings.ACCESS_TOKEN_MINUTES * 60,
            httponly=True,
            samesite="lax",
        )
        self.user = user
        self.request.state.user = user

    def clear(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name)
        self.user = None
        self.request.state.user = None


def get_auth_session(request: Request, db: Session = Depends(get_db)) -> AuthSession:
    return AuthSession(request, db).resolve()


def require_user(auth: AuthSession = Depends(get_auth_session)) -> User:
    if not auth.is_authenticated:
        raise LoginRequired()
    return auth.user


def require_api_user(auth: AuthSession = Depends(get_auth_session)) -> User:
    if not auth.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return auth.user
