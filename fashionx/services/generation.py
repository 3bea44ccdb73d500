# ============================================================================
# services/generation.py - Generation Proxy
# ============================================================================

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.errors import InsufficientCredits, NotFound, PlanRequired, ValidationError
from fashionx.models.generation import MediaKind
from fashionx.models.user import User
from fashionx.schemas.generation import GenerationRequest
from fashionx.services.history import append_history
from fashionx.services.ledger import consume_credit_atomic
from fashionx.services.workflow import WorkflowBackend, WorkflowMode, is_valid_url

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    WorkflowMode.IMAGE_EDIT: ("prompt", "image_url"),
    WorkflowMode.TEXT_TO_VIDEO: ("prompt",),
    WorkflowMode.IMAGE_TO_VIDEO: ("prompt", "image_url"),
    WorkflowMode.AUDIO_TO_VIDEO: ("prompt", "image_url", "audio_url"),
}

URL_FIELDS = {"image_url": "image", "audio_url": "audio"}


def _join_fields(fields) -> str:
    if len(fields) == 1:
        return f"{fields[0]} is"
    return f"{', '.join(fields[:-1])}{',' if len(fields) > 2 else ''} and {fields[-1]} are"


class GenerationService:
    """Wraps one workflow call in credit accounting"""

    def __init__(self, backend: WorkflowBackend):
        self.backend = backend

    def _validate(self, mode: WorkflowMode, request: GenerationRequest) -> None:
        required = REQUIRED_FIELDS[mode]
        missing = [name for name in required if not (getattr(request, name) or "").strip()]
        if missing:
            raise ValidationError(f"{_join_fields(list(required))} required")

        for name in required:
            if name in URL_FIELDS and not is_valid_url(getattr(request, name)):
                raise ValidationError(f"Invalid {URL_FIELDS[name]} URL format", status_code=422)

    def _payload(self, mode: WorkflowMode, request: GenerationRequest, user: User) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"prompt": request.prompt.strip()}
        for name in REQUIRED_FIELDS[mode]:
            if name in URL_FIELDS:
                payload[name] = getattr(request, name).strip()
        payload.update({"webhookType": mode.value, "userId": user.id, "userEmail": user.email})
        return payload

    async def generate(
        self,
        user_id: str,
        mode: WorkflowMode,
        request: GenerationRequest,
        db: AsyncSession,
    ) -> Dict[str, Any]:
        user = await db.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        kind = "videos" if mode.is_video else "images"
        if not user.plan:
            raise PlanRequired(f"Please select a plan to generate {kind}")
        if user.credits_balance <= 0:
            raise InsufficientCredits()

        self._validate(mode, request)

        result = await self.backend.submit(mode, self._payload(mode, request, user))

        media = MediaKind.VIDEO if mode.is_video else MediaKind.IMAGE
        remaining = await consume_credit_atomic(db, user.id, media)
        if remaining is None:
            await db.rollback()
            raise InsufficientCredits()

        if result.asset_url:
            await append_history(
                db,
                user.id,
                media,
                result.asset_url,
                prompt=request.prompt.strip(),
                source_url=request.image_url if mode != WorkflowMode.TEXT_TO_VIDEO else None,
                audio_url=request.audio_url if mode == WorkflowMode.AUDIO_TO_VIDEO else None,
                video_type=mode.value if mode.is_video else None,
                task_id=result.task_id,
            )
        await db.commit()
        await db.refresh(user)

        logger.info(f"Credit deducted for user {user.id} ({mode.value}), remaining {user.credits_balance}")

        data = dict(result.data)
        if result.asset_url:
            data["videoUrl" if mode.is_video else "resultUrl"] = result.asset_url

        response: Dict[str, Any] = {
            "success": True,
            "status": "success",
            "data": data,
            "credits": {"remaining": user.credits_balance},
        }
        if result.asset_url:
            response["videoUrl" if mode.is_video else "resultUrl"] = result.asset_url
        return response
