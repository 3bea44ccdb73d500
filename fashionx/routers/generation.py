# ============================================================================
# routers/generation.py - Image & Video Generation Routes
# ============================================================================

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_current_user, get_workflow_backend
from fashionx.models.user import User
from fashionx.schemas.generation import GenerationRequest
from fashionx.services.generation import GenerationService
from fashionx.services.workflow import WorkflowBackend, WorkflowMode

router = APIRouter(prefix="/api", tags=["generation"])


async def _generate(mode: WorkflowMode, request: GenerationRequest, user: User, db: AsyncSession, backend: WorkflowBackend):
    return await GenerationService(backend).generate(user.id, mode, request, db)


@router.post("/image-edit")
async def image_edit(
    request: GenerationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    backend: WorkflowBackend = Depends(get_workflow_backend),
):
    return await _generate(WorkflowMode.IMAGE_EDIT, request, user, db, backend)


@router.post("/video-edit/text-to-video")
async def text_to_video(
    request: GenerationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    backend: WorkflowBackend = Depends(get_workflow_backend),
):
    return await _generate(WorkflowMode.TEXT_TO_VIDEO, request, user, db, backend)


@router.post("/video-edit/image-to-video")
async def image_to_video(
    request: GenerationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    backend: WorkflowBackend = Depends(get_workflow_backend),
):
    return await _generate(WorkflowMode.IMAGE_TO_VIDEO, request, user, db, backend)


@router.post("/video-edit/audio-to-video")
async def audio_to_video(
    request: GenerationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    backend: WorkflowBackend = Depends(get_workflow_backend),
):
    return await _generate(WorkflowMode.AUDIO_TO_VIDEO, request, user, db, backend)
