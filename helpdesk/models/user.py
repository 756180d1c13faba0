from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from helpdesk.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Account name as received; the unique constraint guards concurrent provisioning
    username = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # NULL for directory-sourced users
    display_name = Column(String(255), nullable=True)
    external = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
