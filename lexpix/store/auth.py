"""
Auth shim.

One fixed admin credential checked in-process, with the signed-in email kept
in an explicitly passed SessionStore. Admins created through invitations are
accepted too when an account repository is supplied.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from lexpix.store.kv import KeyValueStore
from lexpix.utils.auth import verify_password
from lexpix.utils.jwt_auth import create_access_token, decode_token

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "admin-user-id"
SESSION_KEY = "admin_email"


class SessionStore(ABC):
    """Where the signed-in admin's email lives between calls."""

    @abstractmethod
    def get_email(self) -> Optional[str]:
        ...

    @abstractmethod
    def set_email(self, email: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemorySessionStore(SessionStore):

    def __init__(self, email: Optional[str] = None):
        self.email = email

    def get_email(self):
        return self.email

    def set_email(self, email):
        self.email = email

    def clear(self):
        self.email = None


class KeyValueSessionStore(SessionStore):
    """The admin_email flag of the browser build, kept in a key-value store."""

    def __init__(self, kv: KeyValueStore, key: str = SESSION_KEY):
        self.kv = kv
        self.key = key

    def get_email(self):
        return self.kv.get_item(self.key)

    def set_email(self, email):
        self.kv.set_item(self.key, email)

    def clear(self):
        self.kv.remove_item(self.key)


class TokenSessionStore(SessionStore):
    """
    Per-request session carried by a JWT.

    After set_email()/clear() the caller writes ``token`` back to the client
    (or deletes the cookie when it is None).
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token
        self.changed = False

    def get_email(self):
        if not self.token:
            return None
        payload = decode_token(self.token)
        return payload.get("sub") if payload else None

    def set_email(self, email):
        self.token = create_access_token({"sub": email, "role": "admin"})
        self.changed = True

    def clear(self):
        self.token = None
        self.changed = True


@dataclass
class AuthUser:
    id: str
    email: str


@dataclass
class AuthResult:
    user: Optional[AuthUser] = None
    session: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.user is not None


class AuthShim:
    """Fixed-credential authentication with an injectable session store."""

    def __init__(self, session_store: SessionStore, admin_email: str, admin_password: str,
                 password_hash: Optional[str] = None, accounts=None):
        self.session_store = session_store
        self.admin_email = admin_email
        self.admin_password = admin_password
        self.password_hash = password_hash or None
        # Optional Repository of invited admin accounts (email, password_hash)
        self.accounts = accounts

    def _matches_admin(self, email: str, password: str) -> bool:
        if email != self.admin_email.lower():
            return False
        if self.password_hash:
            return verify_password(password, self.password_hash)
        return password == self.admin_password

    async def _find_account(self, email: str) -> Optional[Dict[str, Any]]:
        if self.accounts is None:
            return None
        return await self.accounts.find_one(email=email)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        email = (email or "").strip().lower()
        if self._matches_admin(email, password):
            user = AuthUser(id=ADMIN_USER_ID, email=self.admin_email)
        else:
            account = await self._find_account(email)
            if not account or not verify_password(password, account["password_hash"]):
                logger.info(f"Rejected sign-in for {email or '<empty>'}")
                return AuthResult(error="Invalid login credentials")
            user = AuthUser(id=account["id"], email=account["email"])

        self.session_store.set_email(user.email)
        logger.info(f"Admin signed in: {user.email}")
        return AuthResult(user=user, session={"user": user})

    async def sign_out(self) -> None:
        self.session_store.clear()

    async def get_current_user(self) -> Optional[AuthUser]:
        email = self.session_store.get_email()
        if not email:
            return None
        if email == self.admin_email:
            return AuthUser(id=ADMIN_USER_ID, email=email)
        account = await self._find_account(email)
        if account:
            return AuthUser(id=account["id"], email=account["email"])
        return None

    async def get_session(self) -> Optional[Dict[str, Any]]:
        user = await self.get_current_user()
        return {"user": user} if user else None

    async def is_authenticated(self) -> bool:
        return await self.get_current_user() is not None
