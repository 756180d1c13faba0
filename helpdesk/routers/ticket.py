from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status

from helpdesk.core.deps import get_current_user, get_optional_user, get_ticket_service
from helpdesk.models.user import User
from helpdesk.schemas.ticket import (
    TicketCreate,
    TicketEventCreate,
    TicketEventCreated,
    TicketEventRead,
    TicketRead,
    TicketUpdate,
)
from helpdesk.services.ticket_service import (
    COMPUTER_HEADERS,
    LOCATION_HEADERS,
    TicketService,
    first_header,
)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])

@router.get("", response_model=List[TicketRead])
def list_tickets(service: TicketService = Depends(get_ticket_service)):
    return service.list_tickets()

@router.post("", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
def create_ticket(
    ticket_in: TicketCreate,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    service: TicketService = Depends(get_ticket_service),
):
    return service.create(
        ticket_in.title,
        description=ticket_in.description,
        requester=ticket_in.requester,
        identity=current_user,
        computer=first_header(request.headers, COMPUTER_HEADERS),
        location=first_header(request.headers, LOCATION_HEADERS),
    )

@router.get("/{ticket_id}", response_model=TicketRead)
def get_ticket(ticket_id: int, service: TicketService = Depends(get_ticket_service)):
    return service.get(ticket_id)

@router.put("/{ticket_id}", response_model=TicketRead)
def update_ticket(
    ticket_id: int,
    ticket_in: TicketUpdate,
    current_user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    return service.update(ticket_id, ticket_in.model_dump(exclude_unset=True), current_user)

@router.get("/{ticket_id}/events", response_model=List[TicketEventRead])
def list_ticket_events(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    return service.events(ticket_id, current_user)

@router.post("/{ticket_id}/events", response_model=TicketEventCreated, status_code=status.HTTP_201_CREATED)
def add_ticket_event(
    ticket_id: int,
    event_in: TicketEventCreate,
    current_user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    event = service.add_event(ticket_id, current_user, event_in.message, type=event_in.type)
    return {"id": event.id}
