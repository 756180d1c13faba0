from pydantic import BaseModel
from typing import Optional

class ChatMessageIn(BaseModel):
    text: Optional[str] = ""
    user: Optional[str] = None

class ChatMessageOut(BaseModel):
    id: str
    text: str
    user: str
    ts: str
