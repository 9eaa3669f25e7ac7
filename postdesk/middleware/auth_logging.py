from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

from postdesk.core.config import settings
from postdesk.core.security import ADMIN_SESSION_KEY

logger = logging.getLogger("postdesk")

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        login_path = f"{settings.ADMIN_PREFIX.rstrip('/')}/login"

        # Session is populated by SessionMiddleware, which wraps this one
        has_session = "session" in request.scope and ADMIN_SESSION_KEY in request.session

        if not has_session and request.method == "POST" and "/actions/" in path:
            logger.warning(f"Admin action {path} requested without a logged-in session")

        response = await call_next(request)

        # Anonymous requests bounced to the login form
        if response.status_code == 303 and response.headers.get("location", "").startswith(login_path):
            logger.warning(f"Redirected {request.method} {path} to login")
        elif response.status_code in [401, 403]:
            logger.warning(f"Auth error: {response.status_code} on {path}")

        return response
