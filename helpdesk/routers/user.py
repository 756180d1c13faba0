from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.deps import get_current_user, get_db, get_directory
from helpdesk.core.directory import DirectoryClient
from helpdesk.models.user import User
from helpdesk.schemas.user import DirectoryUser, UserSummary
from helpdesk.services import user_store

router = APIRouter(prefix="/api", tags=["users"])

@router.get("/users", response_model=List[UserSummary])
def read_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return user_store.list_all(db)

@router.get("/directory/users", response_model=List[DirectoryUser])
def search_directory(q: str = "", directory: DirectoryClient = Depends(get_directory)):
    # Empty when the directory is not configured or unreachable
    return directory.search_users(q.strip(), limit=settings.AD_SEARCH_LIMIT)
