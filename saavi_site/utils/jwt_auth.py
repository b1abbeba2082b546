"""
JWT token and session authentication for admin access.
Provides token generation, verification, revocation and the `require_admin` dependency.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging
import uuid

from fastapi import Depends, HTTPException, status, Header, Request
from jose import JWTError, jwt
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from saavi_site.config import settings
from saavi_site.database import get_db
from saavi_site.models import AdminUser, RevokedToken
from saavi_site.utils.auth import verify_password

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_COOKIE_NAME = "admin_token"
SESSION_ADMIN_KEY = "isAdmin"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time (default JWT_EXPIRE_HOURS)

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRE_HOURS))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "jti": uuid.uuid4().hex,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: If token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Invalid or expired token."}
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": "Token is not an access token"}
        )

    return payload


def get_request_tokens(request: Request, authorization: Optional[str] = None) -> List[str]:
    """
    Collect the presented tokens: the httpOnly cookie first, then the Authorization header.
    """
    tokens = []
    cookie_token = request.cookies.get(TOKEN_COOKIE_NAME)
    if cookie_token:
        tokens.append(cookie_token)

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1] not in tokens:
            tokens.append(parts[1])

    return tokens


async def is_token_revoked(db: AsyncSession, jti: Optional[str]) -> bool:
    if not jti:
        return False
    result = await db.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti))
    return result.scalar_one_or_none() is not None


async def revoke_token(db: AsyncSession, payload: dict) -> None:
    """
    Record the token id until its natural expiry and purge expired entries.
    """
    jti = payload.get("jti")
    if not jti or await is_token_revoked(db, jti):
        return

    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    db.add(RevokedToken(jti=jti, expires_at=expires_at))
    await db.execute(
        delete(RevokedToken).where(RevokedToken.expires_at < datetime.now(timezone.utc))
    )
    await db.commit()
    logger.info(f"Revoked token for {payload.get('username', 'unknown')}")


async def resolve_admin(
    request: Request,
    db: AsyncSession,
    authorization: Optional[str] = None,
) -> Optional[dict]:
    """
    Return the admin principal for the request, or None.

    The session flag wins; otherwise the first valid, unrevoked token is used,
    so a stale cookie does not hide a good Authorization header.
    """
    if request.session.get(SESSION_ADMIN_KEY):
        return {"sub": "admin", "username": settings.ADMIN_USERNAME, "method": "session"}

    for token in get_request_tokens(request, authorization):
        try:
            payload = verify_token(token)
        except HTTPException:
            continue

        if await is_token_revoked(db, payload.get("jti")):
            continue

        payload["method"] = "token"
        return payload

    return None


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie or session)"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    FastAPI dependency guarding gallery mutations.

    Returns:
        dict: The admin principal (session or decoded token payload)

    Raises:
        HTTPException: 401 if neither a session nor a valid token is present
    """
    principal = await resolve_admin(request, db, authorization)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Unauthorized", "message": "Admin authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )
    return principal


async def authenticate_admin_user(db: AsyncSession, username: str, password: str) -> dict:
    """
    Check credentials against the stored admin record and return token claims.

    Raises:
        HTTPException: 401 if the user is unknown or the password is wrong
    """
    result = await db.execute(
        select(AdminUser).where(AdminUser.username == username.strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Invalid credentials."}
        )

    return {
        "sub": str(user.id),
        "username": user.username,
    }
