from fastapi import HTTPException
import logging
import mimetypes
from starlette.responses import FileResponse

from postdesk.core.storage import ImageStorage

logger = logging.getLogger(__name__)

class MediaService:
    def __init__(self, storage: ImageStorage):
        self.storage = storage

    def get_media(self, filename: str) -> FileResponse:
        """Serve a stored featured image from the upload directory"""
        path = self.storage.resolve(filename)
        if path is None or not path.is_file():
            logger.warning(f"Media file {filename} not found in {self.storage.upload_dir}")
            raise HTTPException(status_code=404, detail="File not found")

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        logger.info(f"Serving media file {filename}")
        return FileResponse(
            path,
            media_type=content_type,
            headers={"Cache-Control": "private, max-age=86400"},
        )
