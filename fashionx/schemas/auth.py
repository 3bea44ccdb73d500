# ============================================================================
# schemas/auth.py - Authentication Schemas
# ============================================================================
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from fashionx.models.user import Plan, UserRole
from fashionx.schemas.credits import Credits


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


class EmailModel(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class SignupRequest(EmailModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    password: str = Field(min_length=6, max_length=128)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)


class LoginRequest(EmailModel):
    password: str = Field(min_length=1)


class VerifyEmailRequest(EmailModel):
    otp: str = Field(min_length=1)


class ResendOtpRequest(EmailModel):
    pass


class ForgotPasswordRequest(EmailModel):
    pass


class GoogleLoginRequest(BaseModel):
    token: str  # Google ID token


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(min_length=6, max_length=128)


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_password: str
    new_password: str = Field(min_length=6, max_length=128)


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)


class DeleteAccountRequest(BaseModel):
    password: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    plan: Optional[Plan] = None
    plan_price: int = 0
    plan_activated_at: Optional[datetime] = None
    credits: Credits
    is_active: bool
    is_blocked: bool
    is_email_verified: bool
    terms_accepted: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
