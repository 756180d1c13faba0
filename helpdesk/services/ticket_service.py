"""Ticket lifecycle: who may create and change tickets, and what gets recorded.

Each mutation commits the ticket row together with its audit event, then
hands the fresh ticket to ``notify`` for realtime fan-out.
"""

import json
from typing import Any, Callable, List, Mapping, Optional

import structlog
from sqlalchemy.orm import Session

from helpdesk.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from helpdesk.models.ticket import Ticket
from helpdesk.models.ticket_event import TicketEvent
from helpdesk.models.user import User
from helpdesk.schemas.ticket import TicketRead
from helpdesk.services import ticket_store

logger = structlog.get_logger()

ANONYMOUS = "Anonymous"

# Proxy/agent headers carrying the client machine and site, first present wins
COMPUTER_HEADERS = ("x-computer-name", "x-client-host", "x-forwarded-for-host", "x-device")
LOCATION_HEADERS = ("x-location", "x-site", "x-building")

Notify = Callable[[str, Any], None]


def _noop_notify(event: str, payload: Any) -> None:
    pass


def first_header(headers: Mapping[str, str], names) -> Optional[str]:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    return None


def _require_identity(identity: Optional[User]) -> User:
    if identity is None:
        raise AuthenticationError()
    return identity


class TicketService:
    def __init__(self, db: Session, notify: Optional[Notify] = None):
        self.db = db
        self.notify = notify or _noop_notify

    def _get_or_404(self, ticket_id: int) -> Ticket:
        ticket = ticket_store.get_ticket(self.db, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    def _publish(self, event: str, ticket: Ticket):
        self.notify(event, TicketRead.model_validate(ticket).model_dump(mode="json"))

    def get(self, ticket_id: int) -> Ticket:
        return self._get_or_404(ticket_id)

    def list_tickets(self) -> List[Ticket]:
        return ticket_store.list_tickets(self.db)

    def create(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        requester: Optional[str] = None,
        identity: Optional[User] = None,
        computer: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Ticket:
        if not title or not title.strip():
            raise ValidationError("title required")

        # A resolved identity always wins over what the client claims
        who = (identity.username if identity else None) or requester or ANONYMOUS
        ticket = ticket_store.insert_ticket(
            self.db,
            title=title,
            description=description or "",
            requester=who,
            computer=computer,
            location=location,
        )
        ticket_store.append_event(self.db, ticket.id, "created", who, "Ticket created")
        self.db.commit()
        self.db.refresh(ticket)
        logger.info("ticket_created", ticket_id=ticket.id, requester=who)
        self._publish("ticket.created", ticket)
        return ticket

    def update(self, ticket_id: int, fields: Mapping[str, Any], identity: Optional[User]) -> Ticket:
        actor = _require_identity(identity)
        ticket = self._get_or_404(ticket_id)

        changes = {k: v for k, v in fields.items() if k in Ticket.MUTABLE_FIELDS}
        if not changes:
            return ticket
        for required in ("title", "status"):
            if required in changes and not (changes[required] or "").strip():
                raise ValidationError(f"{required} required")

        ticket_store.apply_fields(self.db, ticket, changes)
        ticket_store.append_event(
            self.db, ticket.id, "updated", actor.username, json.dumps(changes, default=str)
        )
        self.db.commit()
        self.db.refresh(ticket)
        logger.info("ticket_updated", ticket_id=ticket.id, actor=actor.username, fields=sorted(changes))
        self._publish("ticket.updated", ticket)
        return ticket

    def events(self, ticket_id: int, identity: Optional[User]) -> List[TicketEvent]:
        _require_identity(identity)
        self._get_or_404(ticket_id)
        return ticket_store.list_events(self.db, ticket_id)

    def add_event(
        self,
        ticket_id: int,
        identity: Optional[User],
        message: Optional[str],
        type: Optional[str] = None,
    ) -> TicketEvent:
        actor = _require_identity(identity)
        self._get_or_404(ticket_id)
        event = ticket_store.append_event(self.db, ticket_id, type or "note", actor.username, message)
        self.db.commit()
        self.db.refresh(event)
        logger.info("ticket_event_added", ticket_id=ticket_id, type=event.type, actor=actor.username)
        return event
