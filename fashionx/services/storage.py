# ============================================================================
# services/storage.py - File Storage Service
# ============================================================================

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile

from fashionx.core.config import settings
from fashionx.core.errors import ValidationError

logger = logging.getLogger(__name__)

IMAGE_TYPES = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}
AUDIO_TYPES = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/ogg": ".ogg",
}

KINDS = {"image": IMAGE_TYPES, "audio": AUDIO_TYPES}


class StorageService:
    def __init__(self, root: str = None):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.root.mkdir(parents=True, exist_ok=True)

    def public_url(self, relative_path: str) -> str:
        return f"{settings.PUBLIC_URL.rstrip('/')}/uploads/{relative_path}"

    async def save_upload(self, file: UploadFile, user_id: str, kind: str) -> dict:
        allowed = KINDS[kind]
        if file.content_type not in allowed:
            names = ", ".join(sorted({ext.lstrip(".").upper() for ext in allowed.values()}))
            raise ValidationError(f"Invalid file type. Only {names} {kind} files are allowed")

        content = await file.read()
        if not content:
            raise ValidationError("No file uploaded")
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(
                f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
                status_code=413,
            )

        # Generate unique filename
        file_ext = Path(file.filename or "").suffix.lower() or allowed[file.content_type]
        if file_ext not in allowed.values() and file_ext not in (".jpeg",):
            file_ext = allowed[file.content_type]
        relative = f"{kind}s/{user_id}/{uuid.uuid4()}{file_ext}"
        file_path = self.root / relative

        # Create user directory
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "wb") as buffer:
            buffer.write(content)

        logger.info(f"Stored {kind} upload for user {user_id}: {relative} ({len(content)} bytes)")
        return {
            "url": self.public_url(relative),
            "filename": file.filename,
            "size": len(content),
            "contentType": file.content_type,
        }
