# ============================================================================
# routers/uploads.py - Upload Routes
# ============================================================================

from fastapi import APIRouter, Depends, File, UploadFile

from fashionx.dependencies import get_current_user
from fashionx.models.user import User
from fashionx.services.storage import StorageService

router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.post("/image", status_code=201)
async def upload_image(file: UploadFile = File(...), user: User = Depends(get_current_user)):
    data = await StorageService().save_upload(file, user.id, "image")
    return {"success": True, "message": "Image uploaded successfully", **data}


@router.post("/audio", status_code=201)
async def upload_audio(file: UploadFile = File(...), user: User = Depends(get_current_user)):
    data = await StorageService().save_upload(file, user.id, "audio")
    return {"success": True, "message": "Audio uploaded successfully", **data}
