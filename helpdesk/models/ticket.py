from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from helpdesk.core.database import Base

class Ticket(Base):
    __tablename__ = "tickets"

    # Fields a caller may change through an update
    MUTABLE_FIELDS = (
        "title",
        "description",
        "requester",
        "status",
        "category",
        "hold_reason",
        "due_date",
        "assigned_to",
        "assigned_at",
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    requester = Column(String(255), nullable=True)
    computer = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    hold_reason = Column(Text, nullable=True)
    due_date = Column(String(50), nullable=True)
    # Soft reference to users.id; dangling values are allowed
    assigned_to = Column(Integer, nullable=True)
    assigned_at = Column(String(50), nullable=True)
    status = Column(String(50), default="open", server_default="open", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    events = relationship("TicketEvent", back_populates="ticket", order_by="TicketEvent.id")
