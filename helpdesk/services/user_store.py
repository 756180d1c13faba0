"""Local user records.

``users.username`` is unique; that constraint is the only thing standing
between two concurrent first-time SSO requests for the same account, so
inserts here catch ``IntegrityError`` and re-read the winner's row.
"""

from typing import List, Optional, Tuple

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpdesk.core.exceptions import ConflictError, ValidationError
from helpdesk.core.security import get_password_hash
from helpdesk.models.user import User

logger = structlog.get_logger()


def get_by_account_name(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def list_all(db: Session) -> List[User]:
    return db.query(User).order_by(User.username).all()


def create_if_absent(
    db: Session,
    *,
    username: str,
    password_hash: Optional[str] = None,
    display_name: Optional[str] = None,
    external: bool = False,
) -> Tuple[User, bool]:
    """Insert a user, or return the existing row if the name is already taken.

    Returns ``(user, created)``.
    """
    user = User(
        username=username,
        password_hash=password_hash,
        display_name=display_name or username,
        external=external,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_by_account_name(db, username)
        if existing is None:
            raise
        logger.info("user_insert_conflict", username=username)
        return existing, False
    db.refresh(user)
    return user, True


def resolve_or_provision(
    db: Session,
    username: str,
    display_name: Optional[str] = None,
    external: bool = True,
) -> User:
    user = get_by_account_name(db, username)
    if user is not None:
        return user
    user, created = create_if_absent(
        db, username=username, display_name=display_name, external=external
    )
    if created:
        logger.info("user_provisioned", username=username, user_id=user.id, external=external)
    return user


def register(db: Session, username: str, password: str, display_name: Optional[str] = None) -> User:
    if not username or not password:
        raise ValidationError("username and password required")
    if get_by_account_name(db, username) is not None:
        raise ConflictError("username taken")
    user, created = create_if_absent(
        db,
        username=username,
        password_hash=get_password_hash(password),
        display_name=display_name,
    )
    if not created:
        raise ConflictError("username taken")
    logger.info("user_registered", username=username, user_id=user.id)
    return user
