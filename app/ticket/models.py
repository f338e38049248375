# app/ticket/models.py
import uuid

from sqlalchemy import Column, DateTime, String, Text, event, inspect
from app.core.database import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=_new_id)
    numero_ticket = Column(String, nullable=True)
    telefono = Column(String, nullable=False, index=True)
    motivo_ticket = Column(Text, nullable=False)
    stato_ticket = Column(String, nullable=False, default="aperto", index=True)
    data_apertura = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    data_chiusura = Column(DateTime(timezone=True), nullable=True)
    chi_aperto = Column(String, nullable=True)
    referente_assistenza = Column(String, nullable=True)
    numero_pm = Column(String, nullable=True)

    @property
    def label(self) -> str:
        return self.numero_ticket or f"#{self.id[:8]}"


@event.listens_for(Ticket, "before_update")
def _stamp_closure(mapper, connection, target: Ticket) -> None:
    # data_chiusura follows stato_ticket: stamped on entering "chiuso", cleared on leaving it
    history = inspect(target).attrs.stato_ticket.history
    if not history.has_changes():
        return
    if target.stato_ticket == "chiuso":
        target.data_chiusura = utcnow()
    else:
        target.data_chiusura = None
