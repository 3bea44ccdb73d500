# ============================================================================
# routers/users.py - Generation History & Terms Routes
# ============================================================================

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_current_user
from fashionx.models.generation import MediaKind
from fashionx.models.user import User
from fashionx.schemas.admin import TermsAcceptRequest
from fashionx.services.history import delete_history_entry, list_history

router = APIRouter(prefix="/api/user", tags=["history"])
terms_router = APIRouter(prefix="/api/terms", tags=["terms"])


@router.get("/images")
async def list_images(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    records = await list_history(db, user.id, MediaKind.IMAGE)
    return {"success": True, "images": [record.to_dict() for record in records]}


@router.delete("/images/{record_id}")
async def delete_image(record_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await delete_history_entry(db, user.id, MediaKind.IMAGE, record_id)
    return {"success": True, "message": "Image deleted successfully"}


@router.get("/videos")
async def list_videos(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    records = await list_history(db, user.id, MediaKind.VIDEO)
    return {"success": True, "videos": [record.to_dict() for record in records]}


@router.delete("/videos/{record_id}")
async def delete_video(record_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await delete_history_entry(db, user.id, MediaKind.VIDEO, record_id)
    return {"success": True, "message": "Video deleted successfully"}


def _terms(user: User) -> dict:
    return {
        "status": user.terms_accepted,
        "acceptedAt": user.terms_accepted_at.isoformat() if user.terms_accepted_at else None,
        "version": user.terms_version,
    }


@terms_router.post("/accept")
async def accept_terms(
    request: TermsAcceptRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user.terms_accepted = True
    user.terms_accepted_at = datetime.utcnow()
    user.terms_version = request.version or "1.0"
    await db.commit()
    await db.refresh(user)
    return {
        "success": True,
        "message": "Terms and conditions accepted successfully",
        "data": {"termsAccepted": _terms(user)},
    }


@terms_router.get("/status")
async def terms_status(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"termsAccepted": _terms(user)}}
