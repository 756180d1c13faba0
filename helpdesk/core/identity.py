"""Identity resolution for HTTP requests and WebSocket handshakes.

A request is mapped to a local user by trying each strategy in order and
stopping at the first one that yields a user:

1. a signed bearer token issued by ``/api/login``;
2. an account name forwarded by a reverse proxy in one of the SSO headers,
   provisioned locally on first sight (with directory metadata when the
   directory is configured).

No strategy raising or returning None is an error: the caller decides
whether an anonymous request is acceptable.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.directory import DirectoryClient
from helpdesk.core.security import verify_access_token
from helpdesk.models.user import User
from helpdesk.services import user_store

logger = structlog.get_logger()


@dataclass
class Credentials:
    token: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


Strategy = Callable[[Credentials, Session], Optional[User]]


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def normalize_account_name(raw: str) -> str:
    """Reduce ``DOMAIN\\name`` and ``name@domain`` to ``name``."""
    name = str(raw).strip()
    if "\\" in name:
        name = name.split("\\")[-1]
    if "@" in name:
        name = name.split("@")[0]
    return name.strip()


def sso_account_name(headers: Mapping[str, str], header_names: Sequence[str]) -> Optional[str]:
    for header in header_names:
        value = headers.get(header)
        if not value:
            continue
        # The first forwarded header present decides, even if it normalizes to nothing
        return normalize_account_name(value) or None
    return None


def bearer_token_strategy(credentials: Credentials, db: Session) -> Optional[User]:
    user_id = verify_access_token(credentials.token)
    if user_id is None:
        return None
    return user_store.get_by_id(db, user_id)


class SSOHeaderStrategy:
    def __init__(self, directory: DirectoryClient, header_names: Optional[Sequence[str]] = None):
        self.directory = directory
        self.header_names = [h.lower() for h in (header_names or settings.SSO_HEADERS)]

    def __call__(self, credentials: Credentials, db: Session) -> Optional[User]:
        headers = {k.lower(): v for k, v in credentials.headers.items()}
        account_name = sso_account_name(headers, self.header_names)
        if not account_name:
            return None

        user = user_store.get_by_account_name(db, account_name)
        if user is not None:
            return user

        display_name = account_name
        if self.directory.configured():
            info = self.directory.lookup_by_account_name(account_name)
            if info is not None and info.display_name:
                display_name = info.display_name
        return user_store.resolve_or_provision(db, account_name, display_name=display_name)


class IdentityResolver:
    def __init__(self, directory: DirectoryClient, strategies: Optional[List[Strategy]] = None):
        self.directory = directory
        if strategies is None:
            strategies = [bearer_token_strategy, SSOHeaderStrategy(directory)]
        self.strategies = strategies

    def resolve(self, credentials: Credentials, db: Session) -> Optional[User]:
        for strategy in self.strategies:
            try:
                user = strategy(credentials, db)
            except SQLAlchemyError:
                logger.exception("identity_strategy_failed", strategy=_strategy_name(strategy))
                db.rollback()
                continue
            if user is not None:
                return user
        return None


def _strategy_name(strategy: Strategy) -> str:
    return getattr(strategy, "__name__", type(strategy).__name__)
