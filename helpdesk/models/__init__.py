from helpdesk.models.user import User
from helpdesk.models.ticket import Ticket
from helpdesk.models.ticket_event import TicketEvent

__all__ = ["User", "Ticket", "TicketEvent"]
