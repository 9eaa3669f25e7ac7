from fastapi import APIRouter, Depends
import logging

from postdesk.core.storage import image_storage
from postdesk.deps import get_current_admin
from postdesk.modules.admin_users.models.admin_user import AdminUser
from .service import MediaService

logger = logging.getLogger(__name__)

router = APIRouter()

def get_media_service():
    return MediaService(image_storage)

@router.get("/media/{filename}")
def serve_media(
    filename: str,
    admin: AdminUser = Depends(get_current_admin),
    media_service: MediaService = Depends(get_media_service),
):
    """Featured image preview for the post forms"""
    return media_service.get_media(filename)
