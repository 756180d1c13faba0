"""Ticket rows and their append-only event log.

Writers flush but do not commit; the caller commits so that a ticket change
and the event describing it land in one transaction.
"""

from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from helpdesk.models.ticket import Ticket
from helpdesk.models.ticket_event import TicketEvent


def get_ticket(db: Session, ticket_id: int) -> Optional[Ticket]:
    return db.query(Ticket).filter(Ticket.id == ticket_id).first()


def list_tickets(db: Session) -> List[Ticket]:
    return db.query(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def insert_ticket(db: Session, **values) -> Ticket:
    ticket = Ticket(status="open", **values)
    db.add(ticket)
    db.flush()
    return ticket


def apply_fields(db: Session, ticket: Ticket, fields: dict) -> Ticket:
    for name, value in fields.items():
        setattr(ticket, name, value)
    ticket.updated_at = func.now()
    db.flush()
    return ticket


def append_event(db: Session, ticket_id: int, type: str, actor: Optional[str], message: Optional[str]) -> TicketEvent:
    event = TicketEvent(ticket_id=ticket_id, type=type, actor=actor, message=message)
    db.add(event)
    db.flush()
    return event


def list_events(db: Session, ticket_id: int) -> List[TicketEvent]:
    return (
        db.query(TicketEvent)
        .filter(TicketEvent.ticket_id == ticket_id)
        .order_by(TicketEvent.created_at.desc(), TicketEvent.id.desc())
        .all()
    )
