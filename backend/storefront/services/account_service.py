"""Account Service — register, login, and self-service profile read/update/delete.

Invariants:
    - Passwords are hashed before they reach the session; plaintext never persisted
    - Email uniqueness checked up front AND enforced by the unique index (race-safe)
    - Password change and profile deletion require re-verifying the current password
    - A valid token whose user no longer exists yields ResourceNotFoundError

Design Decisions:
    - Login distinguishes "Invalid email" from "Incorrect password" unless
      settings.login_generic_errors is enabled (see DESIGN.md)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.config import get_settings
from storefront.core.domain_types import Identity, Role, UserId
from storefront.core.errors import (
    ConflictError, InvalidInputError, ResourceNotFoundError, UnauthenticatedError,
)
from storefront.core.patch import build_patch, merge_patch
from storefront.infrastructure.security import (
    create_access_token, hash_password, verify_password,
)
from storefront.models.user import User

logger = logging.getLogger(__name__)


def identity_of(user: User) -> Identity:
    return Identity(id=UserId(user.id), email=user.email, role=Role(user.role))


class AccountService:
    """User account operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, name: str, email: str, password: str) -> tuple[User, str]:
        """Create a user and issue a token. Raises ConflictError on duplicate email."""
        if await self._find_by_email(email):
            raise ConflictError("Email is already registered")

        user = User(
            name=name, email=email,
            password_hash=await hash_password(password),
            role=Role.USER.value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Email is already registered")
        await self.db.refresh(user)

        logger.info("User registered", extra={"user_id": user.id})
        return user, create_access_token(identity_of(user))

    async def login(self, email: str, password: str) -> tuple[User, str]:
        generic = get_settings().login_generic_errors
        user = await self._find_by_email(email)
        if not user:
            raise UnauthenticatedError(
                "Invalid email or password" if generic else "Invalid email",
            )
        if not await verify_password(password, user.password_hash):
            logger.info("Failed login attempt", extra={"user_id": user.id})
            raise UnauthenticatedError(
                "Invalid email or password" if generic else "Incorrect password",
            )
        return user, create_access_token(identity_of(user))

    async def get_profile(self, identity: Identity) -> User:
        """User with orders, items and products loaded."""
        result = await self.db.execute(
            select(User)
            .where(User.id == identity.id)
            .options(selectinload(User.orders)),
        )
        user = result.scalar_one_or_none()
        if not user:
            raise ResourceNotFoundError("User", identity.id)
        return user

    async def update_profile(self, identity: Identity, sent: dict) -> User:
        """Apply name/email/password changes; each field independent.

        sent holds only the fields present in the request (exclude_unset).
        """
        user = await self._get_user(identity)
        current_password = sent.pop("current_password", None)
        patch = build_patch(sent, required=frozenset({"name", "email", "password"}))

        if "email" in patch and patch["email"] != user.email:
            existing = await self._find_by_email(patch["email"])
            if existing and existing.id != user.id:
                raise ConflictError("Email is already in use")

        if "password" in patch:
            if not current_password:
                raise InvalidInputError(
                    "currentPassword is required to change password",
                    field="currentPassword",
                )
            if not await verify_password(current_password, user.password_hash):
                raise UnauthenticatedError("Current password is incorrect")
            patch["password_hash"] = await hash_password(patch.pop("password"))

        changed = merge_patch(user, patch)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Email is already in use")
        await self.db.refresh(user)

        logger.info(
            f"Profile updated: {', '.join(changed) or 'no changes'}",
            extra={"user_id": user.id},
        )
        return user

    async def delete_profile(self, identity: Identity, password: str) -> None:
        user = await self._get_user(identity)
        if not await verify_password(password, user.password_hash):
            raise UnauthenticatedError("Incorrect password")
        await self.db.delete(user)
        await self.db.commit()
        logger.info("User deleted", extra={"user_id": identity.id})

    async def _get_user(self, identity: Identity) -> User:
        user = await self.db.get(User, identity.id)
        if not user:
            raise ResourceNotFoundError("User", identity.id)
        return user

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
