# ============================================================================
# models/generation.py - Generation History Model
# ============================================================================

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from fashionx.core.database import Base


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class GenerationRecord(Base):
    __tablename__ = "generation_records"

    # Autoincrement id gives the insertion order used for eviction
    id = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(String(64), unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    media = Column(
        SQLEnum(MediaKind, values_callable=lambda e: [m.value for m in e], native_enum=False, length=10),
        nullable=False,
    )
    video_type = Column(String(30), nullable=True)  # text-to-video, image-to-video, audio-to-video
    source_url = Column(Text, nullable=True)
    audio_url = Column(Text, nullable=True)
    result_url = Column(Text, nullable=False)
    prompt = Column(Text, nullable=True)
    task_id = Column(String(128), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="generations")

    def to_dict(self) -> dict:
        data = {
            "id": self.record_id,
            "originalUrl": self.source_url,
            "prompt": self.prompt,
            "taskId": self.task_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if self.media == MediaKind.VIDEO:
            data.update({"videoUrl": self.result_url, "audioUrl": self.audio_url, "type": self.video_type})
        else:
            data["resultUrl"] = self.result_url
        return data
