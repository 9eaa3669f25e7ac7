from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from postdesk.core.security import get_password_hash
from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.admin_users.schemas.admin_user import AdminUserCreate

logger = logging.getLogger(__name__)

def get_admin_user(db: Session, user_id: int) -> Optional[AdminUser]:
    """Get admin user by ID"""
    return db.query(AdminUser).filter(AdminUser.id == user_id).first()

def get_admin_user_by_username(db: Session, username: str) -> Optional[AdminUser]:
    """Get admin user by username"""
    return db.query(AdminUser).filter(AdminUser.username == username).first()

def author_exists(db: Session, author_id: int) -> bool:
    """Check that an author row exists for the given ID"""
    return db.query(AdminUser.id).filter(AdminUser.id == author_id).first() is not None

def list_authors(db: Session) -> List[AdminUser]:
    """Authors for dropdowns, ordered by username"""
    return db.query(AdminUser).order_by(AdminUser.username.asc()).all()

def create_admin_user(db: Session, user_in: AdminUserCreate) -> AdminUser:
    """Create admin user with a hashed password"""
    logger.info(f"Creating admin user: {user_in.username}")
    user = AdminUser(
        username=user_in.username,
        full_name=user_in.full_name,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
