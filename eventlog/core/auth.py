"""Bearer token authentication for the admin API."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from eventlog.core.config import get_settings
from eventlog.core.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer()


async def validate_token_with_external_service(token: str) -> Optional[Dict[str, Any]]:
    """
    Validate token with external auth service.

    Args:
        token: JWT token to validate

    Returns:
        User data if valid, None if invalid or no service is configured
    """
    settings = get_settings()

    if not settings.auth_service_url:
        return None

    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.post(
                f"{settings.auth_service_url}/validate-token",
                json={"token": token},
                headers={"Content-Type": "application/json"},
            )

            if response.status_code == 200:
                data = response.json()
                logger.info("token_validated_with_external_service", user_id=data.get("user_id"))
                return data

            logger.warning("external_auth_validation_failed", status_code=response.status_code)
            return None

    except httpx.HTTPError as e:
        logger.error("external_auth_error", error=str(e))
        return None


def validate_local_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Validate JWT token locally.

    Returns:
        Token payload if valid, None if invalid
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        logger.debug("token_validated_locally", user_id=payload.get("sub"))
        return payload
    except JWTError as e:
        logger.warning("local_jwt_validation_failed", error=str(e))
        return None


def user_roles(user: Dict[str, Any]) -> List[str]:
    """Roles carried by a token payload, from ``role`` and/or ``roles``."""
    roles = user.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    role = user.get("role")
    if role:
        roles = [*roles, role]
    return [str(r) for r in roles]


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> Dict[str, Any]:
    """
    Dependency to get current authenticated user.

    Tries the external auth service first when one is configured, then
    falls back to local JWT validation. The caller id is left on
    ``request.state`` for request logging.

    Raises:
        HTTPException: 401 if neither accepts the token
    """
    token = credentials.credentials
    settings = get_settings()

    user_data = None
    if settings.auth_service_url:
        user_data = await validate_token_with_external_service(token)
    if not user_data:
        user_data = validate_local_token(token)

    if user_data:
        request.state.user_id = user_data.get("user_id") or user_data.get("sub")
        return user_data

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency that only lets admin roles through."""
    allowed = set(get_settings().admin_roles)
    if not allowed.intersection(user_roles(user)):
        logger.warning("admin_access_denied", user_id=user.get("sub") or user.get("user_id"))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def create_access_token(
    user_id: str,
    roles: Optional[List[str]] = None,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT for development and testing.

    Args:
        user_id: Subject of the token
        roles: Roles claim, defaults to ``["user"]``
        email: Optional email claim
        name: Optional display name claim
        expires_delta: Lifetime, defaults to ``jwt_expiration_minutes``

    Returns:
        Encoded JWT string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expiration_minutes))

    payload: Dict[str, Any] = {
        "sub": user_id,
        "user_id": user_id,
        "roles": roles or ["user"],
        "iat": now,
        "exp": expire,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
