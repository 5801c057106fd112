"""
User management endpoints. Admins manage everyone; users may read and
edit their own profile.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import PermissionDeniedError
from ticketing.core.security import get_current_user, require_admin
from ticketing.db.session import get_db
from ticketing.models.user import User, UserRole
from ticketing.schemas.common import ServiceResponse
from ticketing.schemas.user import UserResponse, UserUpdate
from ticketing.services import user_service

router = APIRouter(prefix="/users", tags=["Users"])

_ADMIN_ROLES = {UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value}


@router.get("/", response_model=ServiceResponse[list[UserResponse]])
async def list_users(
    role: Optional[UserRole] = Query(None),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db, role.value if role else None)
    return ServiceResponse(data=[UserResponse.model_validate(u) for u in users], message="Users found successfully.")


@router.get("/me", response_model=ServiceResponse[UserResponse])
async def read_me(current_user: User = Depends(get_current_user)):
    return ServiceResponse(data=UserResponse.model_validate(current_user), message="User found successfully.")


@router.get("/{user_id}", response_model=ServiceResponse[UserResponse])
async def get_user(
    user_id: uuid.UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id)
    return ServiceResponse(data=UserResponse.model_validate(user), message="User found successfully.")


@router.put("/{user_id}", response_model=ServiceResponse[UserResponse])
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    is_admin = current_user.role in _ADMIN_ROLES
    if not is_admin:
        if current_user.id != user_id:
            raise PermissionDeniedError()
        # Role and account status are admin decisions
        if payload.role.value != current_user.role or not payload.is_active:
            raise PermissionDeniedError("Only an admin can change role or account status")
    user = await user_service.update_user(db, user_id, payload)
    return ServiceResponse(data=UserResponse.model_validate(user), message="User updated successfully.")


@router.post("/{user_id}/toggle-status", response_model=ServiceResponse[UserResponse])
async def toggle_user_status(
    user_id: uuid.UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.toggle_user_status(db, user_id)
    return ServiceResponse(data=UserResponse.model_validate(user), message="User status toggled successfully.")
