from fastapi import APIRouter, Depends, Request, Response, status

import accounts
from models import ShopOwner
from schemas import (SignupRequest, LoginRequest, VerifyEmailRequest, ForgotPasswordRequest,
                     ResetPasswordRequest, ChangePasswordRequest, UpdateProfileRequest,
                     AccountResponse, MessageResponse, OwnerAuthResponse, OwnerCheckAuthResponse)
from sessions import SessionIdentity, start_session, end_session, require_owner_session

router = APIRouter(prefix="/api/auth", tags=["shop owner auth"])


@router.get("/check-auth", response_model=OwnerCheckAuthResponse)
async def check_auth(identity: SessionIdentity = Depends(require_owner_session)):
    owner = await accounts.load_account(ShopOwner, identity.current_principal_id())
    return OwnerCheckAuthResponse(user=AccountResponse.model_validate(owner))


@router.post("/signup", response_model=OwnerAuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, response: Response):
    owner = await accounts.register_account(ShopOwner, payload)
    await start_session(response, owner)
    return OwnerAuthResponse(message="User created successfully", user=AccountResponse.model_validate(owner))


@router.post("/verify-email", response_model=OwnerAuthResponse)
async def verify_email(payload: VerifyEmailRequest, response: Response):
    owner = await accounts.verify_account(ShopOwner, payload.code, payload.email)
    await start_session(response, owner)
    return OwnerAuthResponse(message="Email verified successfully", user=AccountResponse.model_validate(owner))


@router.post("/login", response_model=OwnerAuthResponse)
async def login(payload: LoginRequest, response: Response):
    owner = await accounts.authenticate_account(ShopOwner, payload.email, payload.password)
    await start_session(response, owner)
    return OwnerAuthResponse(message="Logged in successfully", user=AccountResponse.model_validate(owner))


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response):
    await end_session(request, response)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(payload: ForgotPasswordRequest):
    await accounts.request_password_reset(ShopOwner, payload.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(token: str, payload: ResetPasswordRequest):
    await accounts.reset_account_password(ShopOwner, token, payload.password)
    return MessageResponse(message="Password reset successful")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(payload: ChangePasswordRequest,
                          identity: SessionIdentity = Depends(require_owner_session)):
    owner = await accounts.load_account(ShopOwner, identity.current_principal_id())
    await accounts.change_account_password(owner, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/update-profile", response_model=OwnerAuthResponse)
async def update_profile(payload: UpdateProfileRequest,
                         identity: SessionIdentity = Depends(require_owner_session)):
    owner = await accounts.load_account(ShopOwner, identity.current_principal_id())
    owner = await accounts.update_account_profile(ShopOwner, owner, payload.name, payload.email)
    return OwnerAuthResponse(message="Profile updated successfully", user=AccountResponse.model_validate(owner))
