from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> AuthUser:
    """
    Validate a Supabase JWT (HS256) and return its claims.
    Raises JWTError or ValidationError.
    """
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        options={"verify_aud": False},
    )
    return AuthUser(**payload)


async def get_current_user(
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Validate Supabase JWT and return the authenticated user.
    """
    try:
        return decode_token(token.credentials)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_optional_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(optional_security)]
) -> Optional[AuthUser]:
    """
    Return the user when a valid token is sent, None for anonymous requests.
    """
    if token is None:
        return None
    try:
        return decode_token(token.credentials)
    except (JWTError, ValidationError):
        logger.debug("Ignoring invalid bearer token on optional-auth route")
        return None


def is_admin(user: AuthUser) -> bool:
    settings = get_settings()
    if user.role == "service_role":
        return True
    if user.app_metadata.get("role") == "admin":
        return True
    return bool(user.email) and user.email.lower() == settings.ADMIN_EMAIL.lower()


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """
    Allow service-role tokens, users whose app_metadata marks them as admin,
    and the configured ADMIN_EMAIL.
    """
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
