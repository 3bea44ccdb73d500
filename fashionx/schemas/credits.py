# ============================================================================
# schemas/credits.py - Credits Aggregate Value Type
# ============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Credits(BaseModel):
    """Credit balance and usage counters of one account.

    The balance is clamped at zero on construction, so a `Credits` value
    never reports a negative balance to the client.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    balance: int = 3
    total_purchased: int = 3
    total_used: int = 0
    images_generated: int = 0
    videos_generated: int = 0
    scenes_generated: int = 0

    @field_validator("balance")
    @classmethod
    def clamp_balance(cls, value: int) -> int:
        return max(0, value)

    def replace(self, **changes) -> "Credits":
        """Copy with changes, re-running validation"""
        return Credits(**{**self.model_dump(), **changes})


class CreditsOverride(BaseModel):
    """Partial admin override of the credit counters"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    balance: Optional[int] = Field(default=None, ge=0)
    total_purchased: Optional[int] = Field(default=None, ge=0)
    total_used: Optional[int] = Field(default=None, ge=0)
    images_generated: Optional[int] = Field(default=None, ge=0)
    videos_generated: Optional[int] = Field(default=None, ge=0)
    scenes_generated: Optional[int] = Field(default=None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
