# Implements security-related functionality:
# Password hashing and verification using bcrypt
# Per-session CSRF token generation and validation
# Provides core security functions used by the auth module and the admin actions

from typing import Any, MutableMapping, Optional
import secrets
import logging

from passlib.context import CryptContext

logger = logging.getLogger("postdesk")

CSRF_SESSION_KEY = "csrf_token"
ADMIN_SESSION_KEY = "admin_user_id"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def generate_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return the session's CSRF token, creating one if needed"""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(32)
        session[CSRF_SESSION_KEY] = token
    return token

def rotate_csrf_token(session: MutableMapping[str, Any]) -> str:
    session.pop(CSRF_SESSION_KEY, None)
    return generate_csrf_token(session)

def validate_csrf_token(session: MutableMapping[str, Any], token: Optional[str]) -> bool:
    expected = session.get(CSRF_SESSION_KEY)
    if not expected or not token:
        logger.warning("CSRF validation failed: missing token")
        return False
    if not secrets.compare_digest(str(expected), str(token)):
        logger.warning("CSRF validation failed: token mismatch")
        return False
    return True

def get_session_admin_id(session: MutableMapping[str, Any]) -> Optional[int]:
    admin_id = session.get(ADMIN_SESSION_KEY)
    try:
        admin_id = int(admin_id)
    except (TypeError, ValueError):
        return None
    return admin_id if admin_id > 0 else None
