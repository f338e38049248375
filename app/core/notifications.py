# app/core/notifications.py
from dataclasses import asdict, dataclass

from fastapi import Request

SESSION_KEY = "_notifications"


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"  # "default" | "destructive"


def notify(request: Request, title: str, description: str, variant: str = "default") -> None:
    """Queue a toast for the next rendered page."""
    queued = request.session.get(SESSION_KEY, [])
    queued.append(asdict(Notification(title, description, variant)))
    request.session[SESSION_KEY] = queued


def notify_error(request: Request, description: str) -> None:
    notify(request, "Errore", description, "destructive")


def pop_notifications(request: Request) -> list[Notification]:
    queued = request.session.pop(SESSION_KEY, [])
    return [Notification(**item) for item in queued]
