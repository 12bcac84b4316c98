from fastapi import APIRouter, Depends, status

import accounts
from auth import TokenIdentity, get_current_site_user, issue_site_user_token
from models import SiteUser
from schemas import (SignupRequest, LoginRequest, VerifyEmailRequest, ForgotPasswordRequest,
                     ResetPasswordRequest, ChangePasswordRequest, UpdateProfileRequest,
                     SiteUserResponse, MessageResponse, SiteUserAuthResponse, CheckAuthResponse)

# logout has no route here: the bearer token is discarded by the client
router = APIRouter(prefix="/api/siteuser", tags=["site user auth"])


@router.post("/signup", response_model=SiteUserAuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest):
    """Create the account and email a verification code; no token until verified or logged in."""
    user = await accounts.register_account(SiteUser, payload)
    return SiteUserAuthResponse(message="User created successfully", user=SiteUserResponse.model_validate(user))


@router.post("/verify-email", response_model=SiteUserAuthResponse)
async def verify_email(payload: VerifyEmailRequest):
    user = await accounts.verify_account(SiteUser, payload.code, payload.email)
    return SiteUserAuthResponse(
        message="Email verified successfully",
        user=SiteUserResponse.model_validate(user),
        token=issue_site_user_token(user),
    )


@router.post("/login", response_model=SiteUserAuthResponse)
async def login(payload: LoginRequest):
    user = await accounts.authenticate_account(SiteUser, payload.email, payload.password)
    return SiteUserAuthResponse(
        message="Logged in successfully",
        user=SiteUserResponse.model_validate(user),
        token=issue_site_user_token(user),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(payload: ForgotPasswordRequest):
    await accounts.request_password_reset(SiteUser, payload.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(token: str, payload: ResetPasswordRequest):
    await accounts.reset_account_password(SiteUser, token, payload.password)
    return MessageResponse(message="Password reset successful")


@router.get("/check-auth", response_model=CheckAuthResponse)
async def check_auth(identity: TokenIdentity = Depends(get_current_site_user)):
    user = await accounts.load_account(SiteUser, identity.current_principal_id())
    return CheckAuthResponse(user=SiteUserResponse.model_validate(user))


@router.post("/change-password", response_model=MessageResponse)
async def change_password(payload: ChangePasswordRequest,
                          identity: TokenIdentity = Depends(get_current_site_user)):
    user = await accounts.load_account(SiteUser, identity.current_principal_id())
    await accounts.change_account_password(user, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/update-profile", response_model=SiteUserAuthResponse)
async def update_profile(payload: UpdateProfileRequest,
                         identity: TokenIdentity = Depends(get_current_site_user)):
    """Email is part of the token claims, so a fresh token is returned."""
    user = await accounts.load_account(SiteUser, identity.current_principal_id())
    user = await accounts.update_account_profile(SiteUser, user, payload.name, payload.email)
    return SiteUserAuthResponse(
        message="Profile updated successfully",
        user=SiteUserResponse.model_validate(user),
        token=issue_site_user_token(user),
    )
