from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class TicketCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    requester: Optional[str] = None

class TicketUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    requester: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    hold_reason: Optional[str] = None
    due_date: Optional[str] = None
    assigned_to: Optional[int] = None
    assigned_at: Optional[str] = None

class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    requester: Optional[str] = None
    computer: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    hold_reason: Optional[str] = None
    due_date: Optional[str] = None
    assigned_to: Optional[int] = None
    assigned_at: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TicketEventCreate(BaseModel):
    type: Optional[str] = None
    message: Optional[str] = None

class TicketEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    type: str
    actor: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

class TicketEventCreated(BaseModel):
    id: int
