"""Credential Primitives — bcrypt password hashing and JWT bearer tokens.

Invariants:
    - Plaintext passwords are never stored or logged
    - bcrypt work runs in a worker thread: it suspends the request, not the event loop
    - Tokens carry exactly {id, email, role} plus exp (when expiry is enabled)
    - decode_access_token raises UnauthenticatedError for every verification failure

Design Decisions:
    - bcrypt directly (no passlib wrapper): checkpw is constant-time
    - PyJWT HS256 with a shared secret from settings
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from storefront.config import get_settings
from storefront.core.account_rules import MAX_PASSWORD_LENGTH
from storefront.core.domain_types import Identity, Role, UserId
from storefront.core.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


def _hash_password_sync(password: str, rounds: int) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password_sync(password: str, password_hash: str) -> bool:
    candidate = password.encode("utf-8")
    # No stored hash can match input bcrypt refuses to hash
    if len(candidate) > MAX_PASSWORD_LENGTH:
        return False
    try:
        return bcrypt.checkpw(candidate, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


async def hash_password(password: str) -> str:
    """One-way salted hash of password."""
    rounds = get_settings().bcrypt_rounds
    return await asyncio.to_thread(_hash_password_sync, password, rounds)


async def verify_password(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(_verify_password_sync, password, password_hash)


def create_access_token(identity: Identity) -> str:
    """Sign a bearer token encoding the identity claims."""
    settings = get_settings()
    claims: dict = identity.to_claims()
    if settings.access_token_expire_minutes > 0:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes,
        )
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Identity:
    """Verify signature/expiry and rebuild the Identity from claims."""
    settings = get_settings()
    try:
        claims = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Invalid token")

    try:
        return Identity(
            id=UserId(int(claims["id"])),
            email=str(claims["email"]),
            role=Role(claims["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise UnauthenticatedError("Invalid token")
