"""LDAP / Active Directory client.

The directory is an optional enhancement: it supplies display names and
email addresses for accounts that arrive through SSO headers, and backs the
people picker. Every operation is best-effort. Connection, bind, search and
timeout failures are logged and reported as an empty result.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog
from ldap3 import NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from helpdesk.core.config import Settings

logger = structlog.get_logger()

ATTRIBUTES = ["sAMAccountName", "displayName", "mail", "userPrincipalName"]


@dataclass
class UserInfo:
    username: str
    display_name: str
    email: Optional[str] = None


def _first(attributes: dict, name: str) -> Optional[str]:
    value = attributes.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return str(value) if value else None


def to_user_info(attributes: dict) -> UserInfo:
    username = _first(attributes, "sAMAccountName") or ""
    principal = _first(attributes, "userPrincipalName")
    return UserInfo(
        username=username,
        display_name=_first(attributes, "displayName") or principal or username,
        email=_first(attributes, "mail") or principal,
    )


class DirectoryClient:
    def __init__(
        self,
        url: str = "",
        bind_dn: str = "",
        bind_password: str = "",
        base_dn: str = "",
        timeout: int = 5,
    ):
        self.url = url
        self.bind_dn = bind_dn
        self.bind_password = bind_password
        self.base_dn = base_dn
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "DirectoryClient":
        return cls(
            url=settings.AD_URL,
            bind_dn=settings.AD_BIND_DN,
            bind_password=settings.AD_BIND_PW,
            base_dn=settings.AD_BASE_DN,
            timeout=settings.AD_TIMEOUT_SECONDS,
        )

    def configured(self) -> bool:
        return bool(self.url and self.bind_dn and self.bind_password and self.base_dn)

    def _connect(self) -> Connection:
        server = Server(self.url, connect_timeout=self.timeout, get_info=NONE)
        return Connection(
            server,
            user=self.bind_dn,
            password=self.bind_password,
            receive_timeout=self.timeout,
            read_only=True,
        )

    def _search(self, search_filter: str, size_limit: int = 0) -> List[UserInfo]:
        conn = self._connect()
        try:
            if not conn.bind():
                raise LDAPException(f"bind failed: {conn.result.get('description')}")
            # A size-limited search reports sizeLimitExceeded but still returns the capped entries
            conn.search(
                self.base_dn,
                search_filter,
                search_scope=SUBTREE,
                attributes=ATTRIBUTES,
                size_limit=size_limit,
            )
            return [to_user_info(entry.entry_attributes_as_dict) for entry in conn.entries]
        finally:
            conn.unbind()

    def lookup_by_account_name(self, account_name: str) -> Optional[UserInfo]:
        if not self.configured() or not account_name:
            return None
        search_filter = f"(&(objectClass=user)(sAMAccountName={escape_filter_chars(account_name)}))"
        try:
            entries = self._search(search_filter, size_limit=1)
        except LDAPException as exc:
            logger.warning("directory_lookup_failed", account_name=account_name, error=str(exc))
            return None
        return entries[0] if entries else None

    def search_users(self, query: str = "", limit: int = 50) -> List[UserInfo]:
        if not self.configured():
            return []
        query = (query or "").strip()
        pattern = f"*{escape_filter_chars(query)}*" if query else "*"
        search_filter = f"(&(objectClass=user)(|(displayName={pattern})(sAMAccountName={pattern})))"
        try:
            entries = self._search(search_filter, size_limit=limit)
        except LDAPException as exc:
            logger.warning("directory_search_failed", query=query, error=str(exc))
            return []
        return entries[:limit]
