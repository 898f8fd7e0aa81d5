from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
import secrets
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from registry.core.config import settings
from registry.core.errors import AuthorizationError

_dev_logger = logging.getLogger("registry.security")
_insecure_keys = {"CHANGE_ME", "secret", "changeme", ""}

if settings.session_secret_key in _insecure_keys or len(settings.session_secret_key) < 32:
    if settings.is_local:
        settings.session_secret_key = secrets.token_urlsafe(64)
        _dev_logger.warning("SESSION_SECRET_KEY was missing/insecure; generated ephemeral key for local dev")
    else:
        raise RuntimeError("SESSION_SECRET_KEY must be set to a secure value (32+ chars) in production")


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Role(str, Enum):
    GUEST = "guest"
    ADMIN = "admin"


@dataclass(frozen=True)
class SessionContext:
    """Identity resolved for a single request.

    Passed explicitly into the services instead of being read from cookies
    deep inside business logic.
    """

    role: Role | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.role is not None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def require_guest(self) -> None:
        # An admin session also opens the guest area.
        if not self.is_authenticated:
            raise AuthorizationError("Guest session required", authenticated=False)

    def require_admin(self) -> None:
        if not self.is_authenticated:
            raise AuthorizationError("Admin session required", authenticated=False)
        if not self.is_admin:
            raise AuthorizationError("Admin privileges required")


ANONYMOUS = SessionContext()
GUEST = SessionContext(Role.GUEST)
ADMIN = SessionContext(Role.ADMIN)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_session_token(role: Role, expires_delta_days: int | None = None) -> str:
    expire_days = expires_delta_days if expires_delta_days is not None else settings.session_expire_days
    expire = datetime.now(timezone.utc) + timedelta(days=expire_days)
    to_encode: dict[str, Any] = {
        "sub": role.value,
        "exp": expire,
        "type": "session",
        "jti": str(uuid4()),
    }
    return jwt.encode(to_encode, settings.session_secret_key, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> Role | None:
    try:
        payload = jwt.decode(
            token,
            settings.session_secret_key,
            algorithms=[settings.session_algorithm],
        )
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    try:
        return Role(payload.get("sub"))
    except ValueError:
        return None
