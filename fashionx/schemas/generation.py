# ============================================================================
# schemas/generation.py - Generation Request Schemas
# ============================================================================

from typing import Optional

from pydantic import BaseModel


class GenerationRequest(BaseModel):
    # Checked by the generation service after the credit checks, so all optional here
    prompt: Optional[str] = None
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
