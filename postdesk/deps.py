from fastapi import Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from postdesk.core.config import settings
from postdesk.core.errors import AdminLoginRequired
from postdesk.core.security import ADMIN_SESSION_KEY, get_session_admin_id
from postdesk.db.session import get_db
from postdesk.modules.admin_users.models.admin_user import AdminUser
from postdesk.modules.admin_users.services.admin_user import get_admin_user

def is_ajax(request: Request) -> bool:
    """True when the caller marks itself as an XMLHttpRequest"""
    return request.headers.get("x-requested-with", "").lower() == "xmlhttprequest"

def get_current_admin(request: Request, db: Session = Depends(get_db)) -> AdminUser:
    """
    Dependency for getting the logged-in admin from the session
    """
    admin_id = get_session_admin_id(request.session)
    if admin_id is None:
        raise AdminLoginRequired()

    admin = get_admin_user(db, user_id=admin_id)
    if not admin or not admin.is_active:
        request.session.pop(ADMIN_SESSION_KEY, None)
        raise AdminLoginRequired("Your session is no longer valid. Please log in again.")

    return admin

def admin_url(path: str = "") -> str:
    """Absolute path under the admin prefix"""
    return f"{settings.ADMIN_PREFIX.rstrip('/')}/{path.lstrip('/')}"

def redirect_to(path: str) -> RedirectResponse:
    """303 redirect to an admin view, the response to every form submission"""
    return RedirectResponse(admin_url(path), status_code=status.HTTP_303_SEE_OTHER)
