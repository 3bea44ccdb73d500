# ============================================================================
# services/history.py - Generation History
# ============================================================================

import logging
import secrets
import time
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.errors import NotFound
from fashionx.models.generation import GenerationRecord, MediaKind

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def new_record_id(media: MediaKind) -> str:
    prefix = "img" if media == MediaKind.IMAGE else "vid"
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


async def append_history(
    db: AsyncSession,
    user_id: str,
    media: MediaKind,
    result_url: str,
    prompt: Optional[str] = None,
    source_url: Optional[str] = None,
    audio_url: Optional[str] = None,
    video_type: Optional[str] = None,
    task_id: Optional[str] = None,
) -> GenerationRecord:
    """Add a record and evict the oldest ones past HISTORY_LIMIT. Does not commit."""
    record = GenerationRecord(
        record_id=new_record_id(media),
        user_id=user_id,
        media=media,
        result_url=result_url,
        prompt=prompt,
        source_url=source_url,
        audio_url=audio_url,
        video_type=video_type,
        task_id=task_id,
    )
    db.add(record)
    await db.flush()

    stale = await db.execute(
        select(GenerationRecord.id)
        .where(GenerationRecord.user_id == user_id, GenerationRecord.media == media)
        .order_by(GenerationRecord.id.desc())
        .offset(HISTORY_LIMIT)
    )
    stale_ids = list(stale.scalars().all())
    if stale_ids:
        await db.execute(delete(GenerationRecord).where(GenerationRecord.id.in_(stale_ids)))
        logger.info(f"Evicted {len(stale_ids)} old {media.value} records for user {user_id}")

    return record


async def list_history(db: AsyncSession, user_id: str, media: MediaKind) -> List[GenerationRecord]:
    result = await db.execute(
        select(GenerationRecord)
        .where(GenerationRecord.user_id == user_id, GenerationRecord.media == media)
        .order_by(GenerationRecord.id.desc())
    )
    return list(result.scalars().all())


async def delete_history_entry(db: AsyncSession, user_id: str, media: MediaKind, record_id: str) -> None:
    result = await db.execute(
        select(GenerationRecord).where(
            GenerationRecord.user_id == user_id,
            GenerationRecord.media == media,
            GenerationRecord.record_id == record_id,
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise NotFound("Image not found" if media == MediaKind.IMAGE else "Video not found")

    await db.delete(record)
    await db.commit()
