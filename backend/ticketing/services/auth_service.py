"""
Authentication service handling user registration, login and password reset.
"""

import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from ticketing.core.config import get_settings
from ticketing.core.exceptions import EntityAlreadyExistsError, EntityNotFoundError, EntityType
from ticketing.core.logging import get_logger
from ticketing.core.security import hash_password, verify_password, create_access_token
from ticketing.models.user import User
from ticketing.schemas.user import PasswordResetConfirm, UserCreate, UserLogin
from ticketing.services.notification_service import PASSWORD_RESET, Notifier, notify, password_reset_body

logger = get_logger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new student or organizer with a hashed password.
    Raises 409 if the email is already registered.
    """
    if await get_user_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise EntityAlreadyExistsError(f"User with email {user_data.email} already exists.")

    user = User(
        name=user_data.name,
        email=user_data.email.lower(),
        hashed_password=hash_password(user_data.password),
        role=user_data.role,
        is_active=True,
        address_line1=user_data.address_line1,
        address_line2=user_data.address_line2,
        city=user_data.city,
        state=user_data.state,
        zip_code=user_data.zip_code,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=str(user.id), role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate user and return JWT access token.
    Raises 401 if credentials are invalid.
    """
    user = await get_user_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    logger.info("user_logged_in", user_id=str(user.id))
    return token


def generate_reset_token(size: int) -> str:
    size = min(max(size, 6), 8)
    return "".join(secrets.choice("0123456789") for _ in range(size))


async def send_password_reset(db: AsyncSession, email: str, notifier: Notifier) -> None:
    user = await get_user_by_email(db, email)
    if user is None:
        raise EntityNotFoundError(EntityType.USER)

    user.reset_token = generate_reset_token(get_settings().PASSWORD_RESET_TOKEN_LENGTH)
    await db.flush()
    await db.commit()

    logger.info("password_reset_requested", user_id=str(user.id))
    await notify(notifier, user.email, PASSWORD_RESET, password_reset_body(user.reset_token))


async def reset_password(db: AsyncSession, data: PasswordResetConfirm) -> bool:
    """Returns False (a soft failure) when the token does not match."""
    user = await get_user_by_email(db, data.email)
    if user is None:
        raise EntityNotFoundError(EntityType.USER)

    if not user.reset_token or not secrets.compare_digest(user.reset_token, data.token):
        logger.warning("password_reset_invalid_token", user_id=str(user.id))
        return False

    user.hashed_password = hash_password(data.password)
    user.reset_token = ""
    await db.flush()

    logger.info("password_reset_completed", user_id=str(user.id))
    return True
