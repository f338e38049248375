# app/auth/schemas.py
from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

FIELD_MESSAGES = {
    "email": "Email non valida",
    "password": "La password deve avere almeno 6 caratteri",
}


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


def parse_credentials(email: str, password: str) -> tuple[Credentials | None, dict[str, str]]:
    """Validate raw form input, returning per-field messages on failure."""
    try:
        return Credentials(email=email, password=password), {}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else ""
            if field in FIELD_MESSAGES:
                errors.setdefault(field, FIELD_MESSAGES[field])
        return None, errors
