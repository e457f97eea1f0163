import logging
import uuid
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from ..exceptions import BadRequestException


logger = logging.getLogger(__name__)


ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class FileService:
    """Service for handling image uploads to the local upload directory"""

    def __init__(self, upload_dir: str, max_file_size: int = 5 * 1024 * 1024):
        self.upload_dir = Path(upload_dir)
        self.max_file_size = max_file_size

    def _validate_image_file(self, file: UploadFile) -> None:
        """Validate uploaded image file"""
        if not file or not file.filename:
            raise BadRequestException("No file uploaded")

        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise BadRequestException(
                "Invalid file type. Only image files (JPG, PNG, GIF, WebP) are allowed."
            )

    async def save_image(self, file: UploadFile, folder: str) -> dict:
        """
        Save uploaded image file and return its public URL

        Args:
            file: The uploaded file
            folder: The subfolder (e.g., 'categories', 'products', 'banners')

        Returns:
            dict: ``url`` under /uploads and the stored ``filename``
        """
        self._validate_image_file(file)

        content = await file.read()
        if len(content) > self.max_file_size:
            raise BadRequestException(
                f"File too large. Maximum size is {self.max_file_size // (1024 * 1024)}MB"
            )

        file_ext = Path(file.filename).suffix.lower() or ALLOWED_IMAGE_TYPES[file.content_type]
        unique_filename = f"{uuid.uuid4().hex}{file_ext}"

        folder_path = self.upload_dir / folder
        folder_path.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(folder_path / unique_filename, 'wb') as f:
            await f.write(content)

        logger.info("Stored upload %s/%s (%d bytes)", folder, unique_filename, len(content))
        return {"url": f"/uploads/{folder}/{unique_filename}", "filename": unique_filename}

    async def delete_image(self, url: str) -> bool:
        """Remove a previously stored upload given its /uploads URL"""
        if not url or not url.startswith("/uploads/"):
            return False

        full_path = self.upload_dir / url[len("/uploads/"):]
        try:
            full_path.resolve().relative_to(self.upload_dir.resolve())
        except ValueError:
            return False

        if full_path.exists():
            full_path.unlink()
            return True
        return False
