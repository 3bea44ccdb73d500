# ============================================================================
# routers/auth.py - Account Routes
# ============================================================================

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_current_user, get_optional_user
from fashionx.models.user import User
from fashionx.schemas.auth import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    ForgotPasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    ProfileUpdateRequest,
    ResendOtpRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
    VerifyEmailRequest,
)
from fashionx.services.auth import auth_service, clear_token_cookie, set_token_cookie
from fashionx.services.email import EmailService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session(response: Response, user: User, token: str, message: str) -> dict:
    set_token_cookie(response, token)
    return {
        "success": True,
        "message": message,
        "token": token,
        "user": UserResponse.model_validate(user).to_dict(),
    }


@router.post("/signup", status_code=201)
async def signup(
    request: SignupRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    user, otp = await auth_service.signup(request, db)
    background_tasks.add_task(EmailService().send_otp_email, user.email, user.first_name, otp)
    return {
        "success": True,
        "message": "User registered successfully. Please check your email for OTP to verify your account and login.",
        "user": UserResponse.model_validate(user).to_dict(),
    }


@router.post("/verify-email")
async def verify_email(request: VerifyEmailRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user, token = await auth_service.verify_email(request.email, request.otp, db)
    return _session(response, user, token, "Email verified successfully")


@router.post("/resend-otp")
async def resend_otp(
    request: ResendOtpRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    user, otp = await auth_service.resend_otp(request.email, db)
    background_tasks.add_task(EmailService().send_otp_email, user.email, user.first_name, otp)
    return {"success": True, "message": "OTP sent successfully"}


@router.post("/login")
async def login(request: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user, token = await auth_service.login(request.email, request.password, db)
    return _session(response, user, token, "Login successful")


@router.post("/google")
async def google_login(request: GoogleLoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user, token = await auth_service.google_login(request.token, db)
    return _session(response, user, token, "Google login successful")


@router.post("/logout")
async def logout(response: Response):
    clear_token_cookie(response)
    return {"success": True, "message": "Logout successful"}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": UserResponse.model_validate(user).to_dict()}


@router.get("/verify")
async def verify(user: Optional[User] = Depends(get_optional_user)):
    if not user:
        return {"success": False, "authenticated": False, "message": "User not authenticated"}
    return {
        "success": True,
        "authenticated": True,
        "message": "User is authenticated",
        "user": UserResponse.model_validate(user).to_dict(),
    }


@router.post("/refresh-token")
async def refresh_token(response: Response, user: User = Depends(get_current_user)):
    token = auth_service.refresh_token(user)
    set_token_cookie(response, token)
    return {"success": True, "message": "Token refreshed successfully", "token": token}


@router.put("/profile")
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.update_profile(user, request, db)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": UserResponse.model_validate(user).to_dict(),
    }


@router.put("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(user, request.current_password, request.new_password, db)
    return {"success": True, "message": "Password changed successfully"}


@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    user, reset_token = await auth_service.forgot_password(request.email, db)
    background_tasks.add_task(EmailService().send_password_reset_email, user.email, user.first_name, reset_token)
    return {"success": True, "message": "Password reset email sent successfully"}


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(request.token, request.password, db)
    return {"success": True, "message": "Password reset successfully"}


@router.delete("/delete-account")
async def delete_account(
    request: DeleteAccountRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.delete_account(user, request.password, db)
    clear_token_cookie(response)
    return {"success": True, "message": "Account deactivated successfully"}
