"""FastAPI dependencies for the identity collaborator (JWT bearer tokens)."""
from dataclasses import dataclass
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from housing.config import settings

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Caller identity and role, trusted as issued by the auth service."""

    user_id: str
    role: str


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    if credentials is None:
        raise _unauthorized("missing_token", "Authentication required")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as e:
        raise _unauthorized("token_expired", "Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise _unauthorized("invalid_token", "Invalid token") from e

    user_id = payload.get("userId")
    role = payload.get("role")
    if not user_id or not role:
        raise _unauthorized("invalid_token", "Invalid token")
    return Identity(user_id=str(user_id), role=str(role))


async def require_writer(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """Only the writer role may create, update or delete housing shares."""
    if identity.role != settings.writer_role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "forbidden_role", "message": "Unauthorized access"},
        )
    return identity
