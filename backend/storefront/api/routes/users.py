"""User Routes — registration, login and the caller's own profile.

Invariants:
    - register/login are public; every /profile route requires a bearer token
    - Responses never include the password hash
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies import get_identity
from storefront.core.domain_types import Identity
from storefront.infrastructure.database import get_db
from storefront.schemas.order import UserProfileRead
from storefront.schemas.user import (
    LoginRequest, ProfileDeleteRequest, ProfileUpdateRequest, RegisterRequest, UserRead,
)
from storefront.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account and return it with a signed token."""
    user, token = await AccountService(db).register(
        body.name, body.email, body.password,
    )
    return {
        "message": "User registered successfully",
        "user": UserRead.model_validate(user).to_wire(),
        "token": token,
    }


@router.post("/login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await AccountService(db).login(body.email, body.password)
    return {
        "message": "Login successful",
        "user": UserRead.model_validate(user).to_wire(),
        "token": token,
    }


@router.get("/profile")
async def get_profile(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Caller's profile with nested orders, items and products."""
    user = await AccountService(db).get_profile(identity)
    return {
        "message": "Profile retrieved successfully",
        "user": UserProfileRead.model_validate(user).to_wire(),
    }


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    user = await AccountService(db).update_profile(
        identity, body.model_dump(exclude_unset=True),
    )
    return {
        "message": "Profile updated successfully",
        "user": UserRead.model_validate(user).to_wire(),
    }


@router.delete("/profile")
async def delete_profile(
    body: ProfileDeleteRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await AccountService(db).delete_profile(identity, body.password)
    return {"message": "Profile deleted successfully"}
