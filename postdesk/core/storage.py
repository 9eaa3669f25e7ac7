import os
import uuid
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from fastapi import UploadFile
from pydantic import BaseModel

from .config import settings

logger = logging.getLogger(__name__)

# Leading bytes of each accepted image type
_SIGNATURES = {
    "image/jpeg": (b"\xff\xd8\xff",),
    "image/png": (b"\x89PNG\r\n\x1a\n",),
    "image/gif": (b"GIF87a", b"GIF89a"),
    "image/webp": (b"RIFF",),
}
# RIFF is a container; WebP also names itself at bytes 8-12
_RIFF_FORMATS = {"image/webp": b"WEBP"}
_EXTENSIONS = {
    "image/jpeg": {".jpg", ".jpeg"},
    "image/png": {".png"},
    "image/gif": {".gif"},
    "image/webp": {".webp"},
}


class UploadResult(BaseModel):
    filename: Optional[str] = None
    errors: List[str] = []

    @property
    def ok(self) -> bool:
        return self.filename is not None and not self.errors


class ImageStorage:
    """Stores featured images in the configured upload directory"""

    @property
    def upload_dir(self) -> Path:
        return Path(settings.UPLOAD_DIRECTORY)

    def ensure_upload_dir(self) -> Optional[str]:
        """Create the upload directory on demand; returns an error message on failure"""
        upload_dir = self.upload_dir
        try:
            upload_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"[UPLOAD] Failed to create upload directory {upload_dir}: {e}")
            return "Failed to create image upload directory."
        if not os.access(upload_dir, os.W_OK):
            logger.error(f"[UPLOAD] Upload directory {upload_dir} is not writable")
            return "Image upload directory is not writable or does not exist."
        return None

    async def save(self, file: UploadFile, allowed_types: Optional[Iterable[str]] = None) -> UploadResult:
        """Validate an uploaded image and store it under a generated name"""
        allowed = list(allowed_types or settings.ALLOWED_IMAGE_TYPES)
        if not file or not file.filename:
            return UploadResult(errors=["No file was uploaded."])

        logger.info(f"[UPLOAD] Received file: {file.filename} ({file.content_type})")
        content_type = (file.content_type or "").lower()
        if content_type not in allowed:
            return UploadResult(errors=[
                f"Invalid file type for '{file.filename}'. Allowed types: {', '.join(allowed)}."
            ])

        extension = Path(file.filename).suffix.lower()
        if extension not in _EXTENSIONS.get(content_type, set()):
            return UploadResult(errors=[f"File extension '{extension or 'none'}' does not match the file type."])

        content = await file.read()
        await file.seek(0)
        if not content:
            return UploadResult(errors=["The uploaded file was empty or only partially uploaded."])
        if len(content) > settings.MAX_UPLOAD_SIZE:
            limit_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
            return UploadResult(errors=[f"The uploaded file exceeds the maximum allowed size of {limit_mb:g} MB."])
        if not self._matches_signature(content, content_type):
            return UploadResult(errors=["The uploaded file is not a valid image."])

        dir_error = self.ensure_upload_dir()
        if dir_error:
            return UploadResult(errors=[dir_error])

        unique_filename = f"{uuid.uuid4().hex}{extension}"
        local_path = self.upload_dir / unique_filename
        try:
            with open(local_path, "wb") as out_file:
                out_file.write(content)
        except OSError as e:
            logger.error(f"[UPLOAD] Failed to save file locally: {e}")
            return UploadResult(errors=["Failed to write file to disk."])

        logger.info(f"[UPLOAD] Saved file locally at {local_path}")
        return UploadResult(filename=unique_filename)

    @staticmethod
    def _matches_signature(content: bytes, content_type: str) -> bool:
        if not content.startswith(_SIGNATURES.get(content_type, ())):
            return False
        riff_format = _RIFF_FORMATS.get(content_type)
        return riff_format is None or content[8:12] == riff_format

    def resolve(self, filename: str) -> Optional[Path]:
        """Path of a stored file, or None for names that escape the upload directory"""
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            return None
        return self.upload_dir / filename

    def delete(self, filename: Optional[str]) -> bool:
        """Best-effort removal of a stored file; never raises"""
        if not filename:
            return False
        path = self.resolve(filename)
        if path is None:
            logger.warning(f"Refusing to delete file outside upload directory: {filename!r}")
            return False
        try:
            if path.is_file():
                path.unlink()
                logger.info(f"Deleted stored image {path}")
                return True
        except OSError as e:
            logger.warning(f"Failed to delete stored image {path}: {e}")
        return False

    def delete_many(self, filenames: Iterable[Optional[str]]) -> int:
        return sum(1 for name in filenames if self.delete(name))

# Global instance for app-wide usage
image_storage = ImageStorage()
