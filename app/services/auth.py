"""
Credential-management flows: signup, login, password change and reset,
profile reads/updates, and the permission lookup used by the
authorization gate.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import BackgroundTasks
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (BadRequestError, ConflictError, InternalError,
                                 NotFoundError, UnauthorizedError)
from app.core.permissions import Permission
from app.core.security import (generate_reset_token, get_password_hash,
                               verify_password)
from app.models.token import ResetToken
from app.models.user import User
from app.schemas.token import LoginResponse
from app.schemas.user import SignupRequest, UserUpdate
from app.services.mail import MailService
from app.services.roles import get_role_by_id, get_role_by_name
from app.services.tokens import issue_tokens
from app.services.users import (create_user, get_user_by_email,
                                get_user_by_email_excluding, get_user_by_id,
                                save_user)

logger = logging.getLogger(__name__)

WRONG_CREDENTIALS = "Wrong credentials"
FORGOT_PASSWORD_MESSAGE = "If this user exists, they will receive an email"


async def signup(db: AsyncSession, body: SignupRequest) -> User:
    if await get_user_by_email(db, body.email) is not None:
        raise ConflictError("Email already in use")

    role_name = body.role.lower()
    role = await get_role_by_name(db, role_name)
    if role is None:
        raise BadRequestError("Invalid role specified")

    user = await create_user(
        db,
        name=body.name,
        email=body.email,
        hashed_password=get_password_hash(body.password),
        role_id=role.id,
        role=role.name,
    )
    logger.info("User %s signed up as %s", user.id, user.role)
    return user


async def login(db: AsyncSession, email: str, password: str) -> LoginResponse:
    user = await get_user_by_email(db, email)
    # Same error for unknown email and bad password
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("Failed login attempt")
        raise UnauthorizedError(WRONG_CREDENTIALS)

    tokens = await issue_tokens(db, user.id)
    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user_id=user.id,
        role=user.role,
    )


async def change_password(
    db: AsyncSession, user_id: int, old_password: str, new_password: str
) -> str:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(old_password, user.hashed_password):
        raise UnauthorizedError(WRONG_CREDENTIALS)

    # Existing refresh tokens stay valid.
    user.hashed_password = get_password_hash(new_password)
    await save_user(db, user)
    logger.info("Password changed for user %s", user.id)
    return "Password changed successfully"


async def forgot_password(
    db: AsyncSession,
    email: str,
    mail: MailService,
    background_tasks: BackgroundTasks,
) -> str:
    """Issue a reset token if the user exists; the reply never says whether it does."""
    user = await get_user_by_email(db, email)
    if user is not None:
        token = generate_reset_token()
        db.add(
            ResetToken(
                token=token,
                user_id=user.id,
                expiry_date=datetime.now(timezone.utc)
                + timedelta(hours=settings.RESET_TOKEN_EXPIRE_HOURS),
            )
        )
        await db.commit()
        background_tasks.add_task(mail.send_password_reset_email, email, token)
        logger.info("Reset token issued for user %s", user.id)
    return FORGOT_PASSWORD_MESSAGE


async def reset_password(db: AsyncSession, new_password: str, reset_token: str) -> None:
    # Find-and-delete in one statement: concurrent redemptions cannot both win.
    result = await db.execute(
        delete(ResetToken)
        .where(
            ResetToken.token == reset_token,
            ResetToken.expiry_date >= datetime.now(timezone.utc),
        )
        .returning(ResetToken.user_id)
        .execution_options(synchronize_session=False)
    )
    user_id = result.scalar_one_or_none()
    await db.commit()
    if user_id is None:
        raise UnauthorizedError("Invalid link")

    user = await get_user_by_id(db, user_id)
    if user is None:
        logger.error("Reset token references missing user %s", user_id)
        raise InternalError()

    user.hashed_password = get_password_hash(new_password)
    await save_user(db, user)
    logger.info("Password reset for user %s", user.id)


async def get_user_permissions(db: AsyncSession, user_id: int) -> list[Permission]:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise BadRequestError("User not found")

    role = await get_role_by_id(db, user.role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role.permission_list()


async def get_user_profile(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_user_profile(db: AsyncSession, user_id: int, body: UserUpdate) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if body.name:
        user.name = body.name

    if body.email:
        if await get_user_by_email_excluding(db, body.email, user.id) is not None:
            raise ConflictError("Email already in use")
        user.email = body.email

    if body.role:
        role = await get_role_by_name(db, body.role.strip().lower())
        if role is None:
            raise BadRequestError("Invalid role specified")
        # Only the cached name; permissions stay bound to role_id
        user.role = role.name

    return await save_user(db, user)
