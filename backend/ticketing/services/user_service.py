"""
User management for admins and profile updates for users themselves.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import EntityAlreadyExistsError, EntityNotFoundError, EntityType
from ticketing.core.logging import get_logger
from ticketing.core.security import hash_password
from ticketing.models.user import User
from ticketing.schemas.user import UserUpdate

logger = get_logger(__name__)


async def list_users(db: AsyncSession, role: str | None = None) -> list[User]:
    query = select(User)
    if role:
        query = query.where(User.role == role)
    result = await db.execute(query.order_by(User.created_at.asc()))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise EntityNotFoundError(EntityType.USER)
    return user


async def update_user(db: AsyncSession, user_id: uuid.UUID, data: UserUpdate) -> User:
    user = await get_user(db, user_id)

    email = data.email.lower()
    if email != user.email:
        taken = await db.execute(select(User.id).where(User.email == email, User.id != user_id))
        if taken.scalar_one_or_none() is not None:
            raise EntityAlreadyExistsError(f"User with email {email} already exists.")

    user.name = data.name
    user.email = email
    user.role = data.role.value
    user.is_active = data.is_active
    user.address_line1 = data.address_line1
    user.address_line2 = data.address_line2
    user.city = data.city
    user.state = data.state
    user.zip_code = data.zip_code
    if data.password:
        user.hashed_password = hash_password(data.password)

    await db.flush()
    await db.refresh(user)
    logger.info("user_updated", user_id=str(user_id))
    return user


async def toggle_user_status(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user(db, user_id)
    user.is_active = not user.is_active
    await db.flush()
    await db.refresh(user)
    logger.info("user_status_toggled", user_id=str(user_id), is_active=user.is_active)
    return user
