from typing import Annotated
import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from registry.core.config import settings
from registry.core.security import ANONYMOUS, SessionContext, decode_session_token
from registry.db.session import get_db


DbSessionDep = Annotated[AsyncSession, Depends(get_db)]
logger = logging.getLogger("registry.auth")


def _extract_token(request: Request) -> str | None:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ").strip() or None
    return None


async def get_session_context(request: Request) -> SessionContext:
    """Resolve the caller's role; never fails, anonymous callers get an empty context."""
    token = _extract_token(request)
    if not token:
        return ANONYMOUS

    role = decode_session_token(token)
    if role is None:
        logger.info("Session token invalid path=%s", request.url.path)
        return ANONYMOUS

    logger.debug("Session resolved path=%s role=%s", request.url.path, role.value)
    return SessionContext(role)


SessionContextDep = Annotated[SessionContext, Depends(get_session_context)]


async def require_admin(context: SessionContextDep) -> SessionContext:
    context.require_admin()
    return context


AdminContextDep = Annotated[SessionContext, Depends(require_admin)]
