"""
Authentication endpoints: register, login and password reset.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.db.session import get_db
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.user import (
    PasswordResetConfirm,
    PasswordResetRequest,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
)
from ticketing.services.auth_service import (
    authenticate_user,
    register_user,
    reset_password,
    send_password_reset,
)
from ticketing.services.notification_service import Notifier, get_notifier

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=ServiceResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new student or organizer account."""
    user = await register_user(db, user_data)
    return ServiceResponse(data=UserResponse.model_validate(user), message="User created successfully.")


@router.post("/login", response_model=ServiceResponse[Token])
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return ServiceResponse(data=Token(access_token=token), message="Login successful.")


@router.post("/password-reset/request", response_model=ServiceResponse[bool])
async def request_password_reset(
    payload: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """E-mail a numeric reset token to the account owner."""
    await send_password_reset(db, payload.email, notifier)
    return ServiceResponse(data=True, message="Password reset email sent successfully.")


@router.post("/password-reset/confirm", response_model=ServiceResponse[bool])
async def confirm_password_reset(payload: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    """Set a new password. A wrong token is reported with success=false."""
    if not await reset_password(db, payload):
        return ServiceResponse(data=False, message="Invalid token.", success=False)
    return ServiceResponse(data=True, message="User password updated successfully.")
