from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import structlog

from helpdesk.core.deps import get_current_user, get_db
from helpdesk.core.exceptions import AuthenticationError, ValidationError
from helpdesk.core.security import create_access_token, verify_password
from helpdesk.models.user import User
from helpdesk.schemas.user import LoginResponse, UserCreate, UserLogin, UserRead, UserSummary
from helpdesk.services import user_store

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["auth"])

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    return user_store.register(db, user_in.username, user_in.password, user_in.display_name)

@router.post("/login", response_model=LoginResponse)
def login(login_in: UserLogin, db: Session = Depends(get_db)):
    if not login_in.username or not login_in.password:
        raise ValidationError("username and password required")
    user = user_store.get_by_account_name(db, login_in.username)
    if not user or not verify_password(login_in.password, user.password_hash):
        logger.info("login_failed", username=login_in.username)
        raise AuthenticationError("invalid credentials")
    token = create_access_token(user.id, user.username)
    return {"token": token, "user": UserSummary.model_validate(user)}

@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
