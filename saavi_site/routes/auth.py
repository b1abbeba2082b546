"""
Admin authentication routes.

Two logins share one admin identity:
- POST /api/admin/login: session cookie, checked against ADMIN_USERNAME / ADMIN_PASSWORD
- POST /api/auth/login: 24h JWT, checked against the bcrypt admin record
"""
from fastapi import APIRouter, Depends, HTTPException, status, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from saavi_site.config import settings
from saavi_site.database import get_db
from saavi_site.schemas import (
    LoginRequest,
    SessionLoginResponse,
    TokenLoginResponse,
    AuthStatusResponse,
    LogoutResponse,
)
from saavi_site.utils.auth import verify_admin_credentials
from saavi_site.utils.jwt_auth import (
    SESSION_ADMIN_KEY,
    TOKEN_COOKIE_NAME,
    authenticate_admin_user,
    create_access_token,
    get_request_tokens,
    resolve_admin,
    revoke_token,
    verify_token,
)
from saavi_site.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_credentials(credentials: LoginRequest) -> tuple[str, str]:
    if not credentials.username or not credentials.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "success": False,
                "error": "Missing credentials",
                "message": "Username and password are required."
            }
        )
    return credentials.username, credentials.password


@router.post("/admin/login", response_model=SessionLoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def admin_login(request: Request, credentials: LoginRequest):
    """
    Session login. Sets `isAdmin` in the signed session cookie on success.

    Raises:
        HTTPException: 400 if fields are missing, 401 on mismatch,
            500 if the admin credentials are not configured
    """
    username, password = _require_credentials(credentials)

    try:
        matched = verify_admin_credentials(username, password)
    except ValueError as e:
        logger.error(f"Admin login attempted without configured credentials: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"success": False, "error": "Authentication not configured", "message": str(e)}
        )

    if not matched:
        logger.warning(f"Failed admin login for username '{username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"success": False, "error": "Invalid credentials", "message": "Invalid credentials"}
        )

    request.session[SESSION_ADMIN_KEY] = True
    logger.info("Admin logged in (session)")
    return SessionLoginResponse(success=True, message="Welcome Admin")


@router.post("/auth/login", response_model=TokenLoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def token_login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Token login against the stored admin record.
    Returns the JWT in the body and also sets it as an httpOnly cookie.
    """
    username, password = _require_credentials(credentials)

    claims = await authenticate_admin_user(db, username, password)
    token = create_access_token(claims)

    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Admin '{claims['username']}' logged in (token)")
    return TokenLoginResponse(token=token, message="Login successful")


@router.get("/admin/status", response_model=AuthStatusResponse)
async def admin_status(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """Report whether the caller holds an admin session or a valid token."""
    principal = await resolve_admin(request, db, authorization)
    return AuthStatusResponse(authenticated=principal is not None)


@router.get("/admin/logout", response_model=LogoutResponse)
async def admin_logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Clear the admin session and revoke any presented tokens.
    Always succeeds, even for callers that were not logged in.
    """
    request.session.clear()

    for token in get_request_tokens(request, authorization):
        try:
            payload = verify_token(token)
        except HTTPException:
            continue
        await revoke_token(db, payload)

    response.delete_cookie(TOKEN_COOKIE_NAME)
    logger.info("Admin logged out")
    return LogoutResponse(success=True)
