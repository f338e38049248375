# app/ticket/schemas.py
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.core.database import as_utc


class TicketStatus(str, Enum):
    APERTO = "aperto"
    IN_LAVORAZIONE = "in_lavorazione"
    CHIUSO = "chiuso"


class StatusFilter(str, Enum):
    TUTTI = "tutti"
    ATTIVI = "attivi"
    APERTO = "aperto"
    IN_LAVORAZIONE = "in_lavorazione"
    CHIUSO = "chiuso"


ACTIVE_STATUSES = (TicketStatus.APERTO, TicketStatus.IN_LAVORAZIONE)

STATUS_LABELS = {
    TicketStatus.APERTO: "Aperto",
    TicketStatus.IN_LAVORAZIONE: "In lavorazione",
    TicketStatus.CHIUSO: "Chiuso",
}

FILTER_OPTIONS = [
    (StatusFilter.ATTIVI, "Attivi"),
    (StatusFilter.APERTO, "Aperti"),
    (StatusFilter.IN_LAVORAZIONE, "In lavorazione"),
    (StatusFilter.CHIUSO, "Chiusi"),
    (StatusFilter.TUTTI, "Tutti"),
]

REQUIRED_FIELDS_MESSAGE = "Compila tutti i campi obbligatori"


class TicketCreate(BaseModel):
    telefono: str = Field(..., min_length=1)
    motivo_ticket: str = Field(..., min_length=1)
    numero_ticket: str | None = None
    chi_aperto: str | None = None
    referente_assistenza: str | None = None
    numero_pm: str | None = None

    @field_validator("telefono", "motivo_ticket", mode="before")
    @classmethod
    def _strip_required(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("numero_ticket", "chi_aperto", "referente_assistenza", "numero_pm", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def insert_values(self) -> dict:
        # blank optionals are left out so the store default applies
        return self.model_dump(exclude_none=True)


class TicketStatusUpdate(BaseModel):
    stato_ticket: TicketStatus


class TicketOut(BaseModel):
    id: str
    numero_ticket: str | None = None
    telefono: str
    motivo_ticket: str
    stato_ticket: TicketStatus
    data_apertura: datetime
    data_chiusura: datetime | None = None
    chi_aperto: str | None = None
    referente_assistenza: str | None = None
    numero_pm: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("data_apertura", "data_chiusura")
    @classmethod
    def _as_utc(cls, value):
        return as_utc(value)
