from typing import Optional

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.database import SessionLocal
from helpdesk.core.directory import DirectoryClient
from helpdesk.core.exceptions import AuthenticationError
from helpdesk.core.hub import RealtimeHub
from helpdesk.core.identity import Credentials, IdentityResolver, bearer_token
from helpdesk.models.user import User
from helpdesk.services.ticket_service import TicketService

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_directory() -> DirectoryClient:
    return DirectoryClient.from_settings(settings)

def get_resolver(directory: DirectoryClient = Depends(get_directory)) -> IdentityResolver:
    return IdentityResolver(directory)

def request_credentials(request: Request) -> Credentials:
    return Credentials(
        token=bearer_token(request.headers.get("authorization")),
        headers=dict(request.headers),
    )

def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    resolver: IdentityResolver = Depends(get_resolver),
) -> Optional[User]:
    return resolver.resolve(request_credentials(request), db)

def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationError()
    return user

def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub

def get_ticket_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
) -> TicketService:
    def notify(event, payload):
        background_tasks.add_task(hub.broadcast, event, payload)

    return TicketService(db, notify=notify)
