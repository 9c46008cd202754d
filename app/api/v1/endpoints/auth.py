"""
Auth endpoints — signup, login, token refresh, password change / reset
and the caller's own profile.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import authenticate, gated, get_db, get_mail_service
from app.core.config import settings
from app.core.permissions import Action, Permission, Resource, permissions
from app.schemas.common import MessageResponse
from app.schemas.token import LoginResponse, RefreshRequest, TokenPair, TokenPayload
from app.schemas.user import (ChangePasswordRequest, ForgotPasswordRequest,
                              LoginRequest, ResetPasswordRequest,
                              SignupRequest, UserEnvelope, UserRead,
                              UserUpdate)
from app.services import auth as auth_service
from app.services.mail import MailService
from app.services.tokens import refresh_tokens

# Rate limiter — keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Register a buyer or seller. The password hash is never returned."""
    user = await auth_service.signup(db, body)
    return UserEnvelope(
        success=True,
        message="User created successfully",
        user=UserRead.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    return await auth_service.login(db, body.email, body.password)


@router.post("/refresh", response_model=TokenPair)
@limiter.limit("10/minute")
async def refresh(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenPair:
    """Swap a refresh token for a new pair; the old refresh token is revoked."""
    return await refresh_tokens(db, body.refresh_token)


@router.put("/change-password", response_model=MessageResponse, dependencies=gated)
async def change_password(
    body: ChangePasswordRequest,
    identity: TokenPayload = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    message = await auth_service.change_password(
        db, identity.user_id, body.old_password, body.new_password
    )
    return MessageResponse(message=message)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    mail: MailService = Depends(get_mail_service),
) -> MessageResponse:
    message = await auth_service.forgot_password(db, body.email, mail, background_tasks)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await auth_service.reset_password(db, body.new_password, body.reset_token)
    return MessageResponse(message="Password reset successfully")


@router.get("/me", response_model=UserRead, dependencies=gated)
@permissions(Permission(resource=Resource.profiles, actions=[Action.read]))
async def read_current_user(
    identity: TokenPayload = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
) -> UserRead:
    user = await auth_service.get_user_profile(db, identity.user_id)
    return UserRead.model_validate(user)


@router.put("/profile", response_model=UserEnvelope, dependencies=gated)
@permissions(Permission(resource=Resource.profiles, actions=[Action.update]))
async def update_profile(
    body: UserUpdate,
    identity: TokenPayload = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    user = await auth_service.update_user_profile(db, identity.user_id, body)
    return UserEnvelope(
        success=True,
        message="Profile updated successfully",
        user=UserRead.model_validate(user),
    )
