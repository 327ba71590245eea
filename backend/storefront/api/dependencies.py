"""Request Dependencies — bearer-token identity and role gate.

Invariants:
    - get_identity raises UnauthenticatedError when the header is missing or invalid
    - require_admin raises ForbiddenError for a valid non-admin token
    - Both run before the request body reaches any service

Design Decisions:
    - HTTPBearer(auto_error=False): the domain error hierarchy owns the 401 shape
    - Identity returned as a value and passed to services explicitly
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.core.domain_types import Identity
from storefront.core.errors import ErrorContext, ForbiddenError, UnauthenticatedError
from storefront.infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Authentication token is required")
    return decode_access_token(credentials.credentials)


async def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise ForbiddenError(context=ErrorContext(user_id=identity.id))
    return identity
