from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
import logging

from postdesk.core.config import settings
from postdesk.core.errors import AdminLoginRequired
from postdesk.core.flash import FlashMessage, set_flash
from postdesk.core.storage import image_storage
from postdesk.db.init_db import create_all_tables
from postdesk.deps import is_ajax, redirect_to
from postdesk.middleware.request_logging import RequestLoggingMiddleware
from postdesk.middleware.auth_logging import AuthLoggingMiddleware
from postdesk.modules.auth.api.router import router as auth_router
from postdesk.modules.posts.api.router import router as posts_router
from postdesk.modules.media.router import router as media_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("postdesk")

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.ADMIN_PREFIX}/openapi.json",
    debug=settings.DEBUG,
    description="Post management for the blog admin panel",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.PROJECT_NAME} in {settings.ENVIRONMENT} mode")

    create_all_tables()

    error = image_storage.ensure_upload_dir()
    if error:
        logger.warning(f"Uploads will fail until fixed: {error}")

@app.exception_handler(AdminLoginRequired)
async def admin_login_required_handler(request: Request, exc: AdminLoginRequired):
    if is_ajax(request):
        return JSONResponse({"success": False, "message": exc.message, "data": None})
    set_flash(request, FlashMessage(message=exc.message, type="error"))
    return redirect_to("login")

# Add middleware (the last one added runs first)
app.add_middleware(AuthLoggingMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=settings.SESSION_HTTPS_ONLY,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register admin routers
app.include_router(auth_router, prefix=settings.ADMIN_PREFIX, tags=["authentication"])
app.include_router(posts_router, prefix=settings.ADMIN_PREFIX, tags=["posts"])
app.include_router(media_router, prefix=settings.ADMIN_PREFIX, tags=["media"])

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "admin": f"{settings.ADMIN_PREFIX}/posts",
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("postdesk.main:app", host="0.0.0.0", port=8000, reload=True)
