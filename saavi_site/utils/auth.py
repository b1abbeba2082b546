"""
Password authentication utilities for admin access.
bcrypt hashes back the token login; the session login compares the configured pair.
"""
import secrets

import bcrypt
from saavi_site.config import settings


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.

    Args:
        password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def verify_admin_credentials(username: str, password: str) -> bool:
    """
    Compare a username/password pair with ADMIN_USERNAME / ADMIN_PASSWORD.

    Raises:
        ValueError: If the admin credentials are not configured
    """
    if not settings.ADMIN_USERNAME or not settings.ADMIN_PASSWORD:
        raise ValueError("ADMIN_USERNAME / ADMIN_PASSWORD not configured")

    # Both comparisons always run
    user_ok = secrets.compare_digest(username.encode('utf-8'), settings.ADMIN_USERNAME.encode('utf-8'))
    pass_ok = secrets.compare_digest(password.encode('utf-8'), settings.ADMIN_PASSWORD.encode('utf-8'))
    return user_ok and pass_ok
