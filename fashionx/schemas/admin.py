# ============================================================================
# schemas/admin.py - Plan, Terms & Admin Schemas
# ============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fashionx.schemas.credits import CreditsOverride


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlanSelectRequest(CamelModel):
    plan_id: Optional[str] = None


class CheckoutRequest(CamelModel):
    plan_id: Optional[str] = None


class TermsAcceptRequest(CamelModel):
    version: str = "1.0"


class CreditsUpdateRequest(CamelModel):
    credits: Optional[CreditsOverride] = None


class PlanOverrideRequest(CamelModel):
    plan: Optional[str] = None
    plan_price: Optional[int] = Field(default=None, ge=0)
    credits: Optional[CreditsOverride] = None


class StatusUpdateRequest(CamelModel):
    is_blocked: Optional[bool] = None
    is_active: Optional[bool] = None


class RefundRequest(CamelModel):
    transaction_id: Optional[int] = None
