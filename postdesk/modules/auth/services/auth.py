import logging
from typing import Optional
from sqlalchemy.orm import Session

from postdesk.core.security import verify_password
from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.admin_users.services.admin_user import get_admin_user_by_username

logger = logging.getLogger("postdesk")

def authenticate_admin(db: Session, username: str, password: str) -> Optional[AdminUser]:
    """Return the active admin matching the credentials, or None"""
    user = get_admin_user_by_username(db, username=username.strip())
    if not user or not user.hashed_password:
        logger.warning(f"Login failed for unknown admin: {username!r}")
        return None
    if not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed for admin {user.id}: bad password")
        return None
    if not user.is_active:
        logger.warning(f"Login refused for inactive admin {user.id}")
        return None
    return user
