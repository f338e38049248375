# app/auth/services.py
import logging
from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth.models import User
from app.auth.schemas import Credentials
from app.core.config import get_settings
from app.core.database import utcnow
from app.core.errors import AppError, StoreError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthError(AppError):
    status_code = 401

    INVALID_CREDENTIALS = "invalid_credentials"
    ALREADY_REGISTERED = "already_registered"

    def __init__(self, code: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.code = code
        if status_code is not None:
            self.status_code = status_code


AUTH_ERROR_MESSAGES = {
    AuthError.INVALID_CREDENTIALS: "Email o password non corretti",
    AuthError.ALREADY_REGISTERED: "Questa email è già registrata",
}


def auth_error_message(error: AuthError) -> str:
    return AUTH_ERROR_MESSAGES.get(error.code, error.message)


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    settings = get_settings()
    now = utcnow()
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_MINUTES)
    payload = {"sub": user_id, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> str | None:
    try:
        payload = jwt.decode(token, get_settings().SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def sign_up(db: Session, credentials: Credentials) -> User:
    if db.query(User).filter(User.email == credentials.email).first():
        raise AuthError(AuthError.ALREADY_REGISTERED, "User already registered", status_code=409)

    user = User(email=credentials.email, hashed_password=hash_password(credentials.password))
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise AuthError(AuthError.ALREADY_REGISTERED, "User already registered", status_code=409) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register %s", credentials.email)
        raise StoreError("Unable to register user") from exc

    logger.info("Registered user %s", user.id)
    return user


def sign_in(db: Session, credentials: Credentials) -> User:
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise AuthError(AuthError.INVALID_CREDENTIALS, "Invalid login credentials")
    logger.info("User %s signed in", user.id)
    return user


def get_user(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()
