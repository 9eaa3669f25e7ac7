"""Session login/logout for admin users"""
from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
import logging

from postdesk.core.flash import FlashMessage, pop_flash, set_flash
from postdesk.core.security import (
    ADMIN_SESSION_KEY, generate_csrf_token, get_session_admin_id, rotate_csrf_token, validate_csrf_token
)
from postdesk.db.session import get_db
from postdesk.deps import redirect_to
from postdesk.modules.auth.schemas.auth import LoginPage
from postdesk.modules.auth.services.auth import authenticate_admin

router = APIRouter()
logger = logging.getLogger("postdesk")

@router.get("/login", response_model=LoginPage)
def login_view(request: Request):
    """State rendered by the login form"""
    if get_session_admin_id(request.session) is not None:
        return redirect_to("posts")
    return LoginPage(
        csrf_token=generate_csrf_token(request.session),
        flash=pop_flash(request),
    )

@router.post("/login")
def login(
    request: Request,
    db: Session = Depends(get_db),
    username: str = Form(""),
    password: str = Form(""),
    csrf_token: str = Form(""),
):
    """Authenticate an admin and start the session"""
    if not validate_csrf_token(request.session, csrf_token):
        set_flash(request, FlashMessage(message="Invalid security token. Please try again.", type="error"))
        return redirect_to("login")

    admin = authenticate_admin(db, username, password) if username and password else None
    if admin is None:
        set_flash(request, FlashMessage(message="Invalid username or password.", type="error"))
        return redirect_to("login")

    request.session[ADMIN_SESSION_KEY] = admin.id
    rotate_csrf_token(request.session)
    logger.info(f"Admin {admin.id} logged in")
    set_flash(request, FlashMessage(message=f"Welcome back, {admin.full_name or admin.username}!", type="success"))
    return redirect_to("posts")

@router.post("/logout")
def logout(request: Request, csrf_token: str = Form("")):
    """End the admin session"""
    if not validate_csrf_token(request.session, csrf_token):
        set_flash(request, FlashMessage(message="Invalid security token. Please try again.", type="error"))
        return redirect_to("posts")

    admin_id = get_session_admin_id(request.session)
    request.session.clear()
    logger.info(f"Admin {admin_id} logged out")
    set_flash(request, FlashMessage(message="You have been logged out.", type="success"))
    return redirect_to("login")
