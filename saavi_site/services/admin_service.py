"""
Admin account management for the token login.
There is exactly one admin; creating a second one is refused.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from saavi_site.models import AdminUser
from saavi_site.utils.auth import hash_password

logger = logging.getLogger(__name__)


class AdminExistsError(ValueError):
    pass


async def get_admin_user(db: AsyncSession) -> Optional[AdminUser]:
    result = await db.execute(select(AdminUser).limit(1))
    return result.scalar_one_or_none()


async def create_admin_user(db: AsyncSession, username: str, password: str) -> AdminUser:
    """
    Create the admin record with a bcrypt-hashed password.

    Raises:
        ValueError: If username or password is empty
        AdminExistsError: If an admin already exists
    """
    username = (username or "").strip()
    if not username or not password:
        raise ValueError("Username and password are required")

    if await get_admin_user(db) is not None:
        raise AdminExistsError("An admin user already exists")

    user = AdminUser(username=username, password_hash=hash_password(password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Created admin user '{username}'")
    return user
