# ============================================================================
# services/auth.py - Authentication Service
# ============================================================================

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

import httpx
from fastapi import Response
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests
from google.oauth2 import id_token
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.config import settings
from fashionx.core.errors import (
    AccountDeactivated,
    InvalidToken,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from fashionx.core.security import (
    create_access_token,
    generate_otp,
    generate_reset_token,
    hash_password,
    verify_password,
)
from fashionx.models.user import Plan, User
from fashionx.schemas.auth import ProfileUpdateRequest, SignupRequest
from fashionx.services.ledger import grant_free_on_first_login

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


def set_token_cookie(response: Response, token: str) -> None:
    # Readable by the frontend, which also sends it back as a Bearer header
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=settings.jwt_expire_seconds,
        httponly=False,
        secure=settings.COOKIE_SECURE or settings.is_production,
        samesite="none" if settings.is_production else "lax",
        path="/",
    )


def clear_token_cookie(response: Response) -> None:
    response.delete_cookie(key=TOKEN_COOKIE, path="/")


def _mask(token: str) -> str:
    return f"{token[:10]}..." if token else ""


class AuthService:

    async def _find_by_email(self, email: str, db: AsyncSession) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    def _issue_otp(self, user: User) -> str:
        otp = generate_otp()
        user.otp = otp
        user.otp_expires = datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
        return otp

    # ------------------------------------------------------------------
    # Local accounts
    # ------------------------------------------------------------------

    async def signup(self, data: SignupRequest, db: AsyncSession) -> Tuple[User, str]:
        """Create an unverified account; returns the user and the OTP to email"""
        if await self._find_by_email(data.email, db):
            raise ValidationError("User with this email already exists")

        user = User(
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
        )
        otp = self._issue_otp(user)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"✅ Registered user {user.id} ({user.email})")
        return user, otp

    async def verify_email(self, email: str, otp: str, db: AsyncSession) -> Tuple[User, str]:
        user = await self._find_by_email(email, db)
        if (
            not user
            or not user.otp
            or user.otp != otp.strip()
            or not user.otp_expires
            or user.otp_expires < datetime.utcnow()
        ):
            raise ValidationError("Invalid or expired OTP")

        user.is_email_verified = True
        user.otp = None
        user.otp_expires = None
        user.last_login = datetime.utcnow()
        grant_free_on_first_login(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Email verified for user {user.id}")
        return user, create_access_token(user.id)

    async def resend_otp(self, email: str, db: AsyncSession) -> Tuple[User, str]:
        user = await self._find_by_email(email, db)
        if not user:
            raise NotFound("No account found with this email")
        if user.is_email_verified:
            raise ValidationError("Email is already verified")

        otp = self._issue_otp(user)
        await db.commit()
        return user, otp

    async def login(self, email: str, password: str, db: AsyncSession) -> Tuple[User, str]:
        user = await self._find_by_email(email, db)
        if not user:
            raise Unauthenticated("Invalid email or password")
        if not user.is_active:
            raise AccountDeactivated()
        if not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid email or password")
        if not user.is_email_verified:
            raise Unauthenticated("Email not verified. Please verify your email before logging in.")

        user.last_login = datetime.utcnow()
        if grant_free_on_first_login(user):
            logger.info(f"Granted free plan credits to user {user.id} on login")
        await db.commit()
        await db.refresh(user)

        logger.info(f"✅ User {user.id} logged in")
        return user, create_access_token(user.id)

    # ------------------------------------------------------------------
    # Google
    # ------------------------------------------------------------------

    async def _verify_token_with_google_api(self, token: str) -> dict:
        """Verify token using Google's tokeninfo API as fallback"""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": token})

        if response.status_code != 200:
            raise InvalidToken("Invalid Google token")

        data = response.json()
        if data.get("aud") != settings.GOOGLE_CLIENT_ID:
            raise InvalidToken("Google token audience mismatch")
        return data

    async def verify_google_token(self, token: str) -> dict:
        try:
            return id_token.verify_oauth2_token(token, requests.Request(), settings.GOOGLE_CLIENT_ID)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            logger.warning(f"Google library verification failed: {e}")
            return await self._verify_token_with_google_api(token)

    async def google_login(self, token: str, db: AsyncSession) -> Tuple[User, str]:
        idinfo = await self.verify_google_token(token)
        google_id = idinfo.get("sub")
        email = (idinfo.get("email") or "").strip().lower()
        if not google_id or not email:
            raise InvalidToken("Invalid Google token")

        # Find existing user by Google ID first, then by email
        result = await db.execute(select(User).where(User.google_id == google_id))
        user = result.scalar_one_or_none()
        if not user:
            user = await self._find_by_email(email, db)
            if user:
                user.google_id = google_id
                user.is_email_verified = True

        if not user:
            user = User(
                email=email,
                google_id=google_id,
                first_name=(idinfo.get("given_name") or "")[:50] or None,
                last_name=(idinfo.get("family_name") or "")[:50] or None,
                is_email_verified=True,
                plan=Plan.FREE,
            )
            db.add(user)
            logger.info(f"Creating new Google user {email}")

        if not user.is_active:
            raise AccountDeactivated()

        user.last_login = datetime.utcnow()
        grant_free_on_first_login(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"✅ Google login for user {user.id}")
        return user, create_access_token(user.id)

    # ------------------------------------------------------------------
    # Session & profile
    # ------------------------------------------------------------------

    def refresh_token(self, user: User) -> str:
        return create_access_token(user.id)

    async def update_profile(self, user: User, data: ProfileUpdateRequest, db: AsyncSession) -> User:
        if data.first_name is not None:
            user.first_name = data.first_name.strip()
        if data.last_name is not None:
            user.last_name = data.last_name.strip()
        await db.commit()
        await db.refresh(user)
        return user

    async def change_password(self, user: User, current_password: str, new_password: str, db: AsyncSession) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await db.commit()
        logger.info(f"Password changed for user {user.id}")

    async def forgot_password(self, email: str, db: AsyncSession) -> Tuple[User, str]:
        user = await self._find_by_email(email, db)
        if not user:
            raise NotFound("No user found with this email address")

        reset_token = generate_reset_token()
        user.password_reset_token = reset_token
        user.password_reset_expires = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        await db.commit()

        logger.info(f"Password reset requested for user {user.id} ({_mask(reset_token)})")
        return user, reset_token

    async def reset_password(self, token: str, password: str, db: AsyncSession) -> None:
        result = await db.execute(select(User).where(User.password_reset_token == token))
        user = result.scalar_one_or_none()
        if not user or not user.password_reset_expires or user.password_reset_expires < datetime.utcnow():
            raise ValidationError("Invalid or expired reset token")

        user.password_hash = hash_password(password)
        user.password_reset_token = None
        user.password_reset_expires = None
        await db.commit()
        logger.info(f"Password reset for user {user.id}")

    async def delete_account(self, user: User, password: Optional[str], db: AsyncSession) -> None:
        """Soft delete: the account is deactivated, never removed"""
        if not password:
            raise ValidationError("Password is required to delete account")
        if not verify_password(password, user.password_hash):
            raise ValidationError("Invalid password")

        user.is_active = False
        await db.commit()
        logger.info(f"Account deactivated for user {user.id}")


auth_service = AuthService()
