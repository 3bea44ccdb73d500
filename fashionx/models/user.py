# ============================================================================
# models/user.py - User Database Model
# ============================================================================

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from fashionx.core.database import Base
from fashionx.schemas.credits import Credits


class Plan(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"

    def grants(self, *allowed: "UserRole") -> bool:
        return self in allowed


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # NULL for Google accounts
    google_id = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    role = Column(
        SQLEnum(UserRole, values_callable=_enum_values, native_enum=False, length=10),
        default=UserRole.USER,
        nullable=False,
    )

    is_active = Column(Boolean, default=True, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    otp = Column(String(10), nullable=True)
    otp_expires = Column(DateTime, nullable=True)
    password_reset_token = Column(String(128), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)

    # Plan
    plan = Column(
        SQLEnum(Plan, values_callable=_enum_values, native_enum=False, length=20),
        nullable=True,
    )
    plan_price = Column(Integer, default=0, nullable=False)
    plan_activated_at = Column(DateTime, default=datetime.utcnow, nullable=True)

    # Credits aggregate, see `credits`
    credits_balance = Column(Integer, default=3, nullable=False)
    credits_total_purchased = Column(Integer, default=3, nullable=False)
    credits_total_used = Column(Integer, default=0, nullable=False)
    images_generated = Column(Integer, default=0, nullable=False)
    videos_generated = Column(Integer, default=0, nullable=False)
    scenes_generated = Column(Integer, default=0, nullable=False)
    last_purchase_at = Column(DateTime, nullable=True)
    last_purchase_amount = Column(Integer, default=0, nullable=False)

    # Terms & conditions
    terms_accepted = Column(Boolean, default=False, nullable=False)
    terms_accepted_at = Column(DateTime, nullable=True)
    terms_version = Column(String(20), default="1.0", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    payments = relationship("Payment", back_populates="user")
    generations = relationship("GenerationRecord", back_populates="user", cascade="all, delete-orphan")

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; new instances need them in memory too
        now = datetime.utcnow()
        kwargs.setdefault("id", _new_id())
        kwargs.setdefault("role", UserRole.USER)
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("is_blocked", False)
        kwargs.setdefault("is_email_verified", False)
        kwargs.setdefault("plan", Plan.FREE)
        kwargs.setdefault("plan_price", 0)
        kwargs.setdefault("plan_activated_at", now)
        kwargs.setdefault("credits_balance", 3)
        kwargs.setdefault("credits_total_purchased", 3)
        kwargs.setdefault("credits_total_used", 0)
        kwargs.setdefault("images_generated", 0)
        kwargs.setdefault("videos_generated", 0)
        kwargs.setdefault("scenes_generated", 0)
        kwargs.setdefault("last_purchase_amount", 0)
        kwargs.setdefault("terms_accepted", False)
        kwargs.setdefault("terms_version", "1.0")
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, plan={self.plan}, balance={self.credits_balance})>"

    @property
    def credits(self) -> Credits:
        return Credits(
            balance=self.credits_balance,
            total_purchased=self.credits_total_purchased,
            total_used=self.credits_total_used,
            images_generated=self.images_generated,
            videos_generated=self.videos_generated,
            scenes_generated=self.scenes_generated,
        )

    @credits.setter
    def credits(self, value: Credits) -> None:
        self.credits_balance = value.balance
        self.credits_total_purchased = value.total_purchased
        self.credits_total_used = value.total_used
        self.images_generated = value.images_generated
        self.videos_generated = value.videos_generated
        self.scenes_generated = value.scenes_generated

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def has_role(self, *roles: UserRole) -> bool:
        return UserRole(self.role).grants(*roles)


# Register the related models with the mapper
from fashionx.models import generation, payment  # noqa: E402,F401
