from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: Optional[str] = None
    external: bool = False
    created_at: Optional[datetime] = None

class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: Optional[str] = None

class UserCreate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None

class UserLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseModel):
    token: str
    user: UserSummary

class DirectoryUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    display_name: str = Field(serialization_alias="displayName")
    email: Optional[str] = None
