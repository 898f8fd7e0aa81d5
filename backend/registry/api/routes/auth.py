from typing import TypedDict
import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from registry.api.deps import DbSessionDep, SessionContextDep
from registry.core.audit import AuditAction, audit_log, audit_login
from registry.core.config import settings
from registry.core.rate_limit import check_rate_limit
from registry.core.security import Role, create_session_token
from registry.schemas.auth import LoginResult, PasswordLoginRequest, SessionCheck
from registry.services.site import check_password


router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("registry.auth")


class CookieOptions(TypedDict, total=False):
    samesite: str
    secure: bool


def _cookie_options() -> CookieOptions:
    """Lax over plain HTTP locally, secure cookies everywhere else."""
    return {"samesite": "lax", "secure": not settings.is_local}


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        path="/",
        **_cookie_options(),
    )


async def _login(request: Request, response: Response, db: DbSessionDep, role: Role, password: str) -> LoginResult:
    check_rate_limit(
        request,
        max_requests=settings.rate_limit_login_requests,
        key_suffix=role.value,
    )
    if not await check_password(db, role, password):
        audit_login(request, role.value, success=False)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect password")

    _set_session_cookie(response, create_session_token(role))
    audit_login(request, role.value, success=True)
    logger.info("Session opened role=%s", role.value)
    return LoginResult(session_type=role.value)


@router.post("/guest", response_model=LoginResult)
async def guest_login(
    payload: PasswordLoginRequest,
    request: Request,
    response: Response,
    db: DbSessionDep,
) -> LoginResult:
    return await _login(request, response, db, Role.GUEST, payload.password)


@router.post("/admin", response_model=LoginResult)
async def admin_login(
    payload: PasswordLoginRequest,
    request: Request,
    response: Response,
    db: DbSessionDep,
) -> LoginResult:
    return await _login(request, response, db, Role.ADMIN, payload.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request, response: Response, context: SessionContextDep) -> None:
    response.delete_cookie(settings.session_cookie_name, path="/", **_cookie_options())
    audit_log(
        AuditAction.LOGOUT,
        request=request,
        role=context.role.value if context.role else None,
    )


@router.get("/check", response_model=SessionCheck)
async def check_session(context: SessionContextDep) -> SessionCheck:
    return SessionCheck(
        authenticated=context.is_authenticated,
        session_type=context.role.value if context.role else None,
    )
