"""
FastAPI dependencies for authentication and database access.
Users authenticate with Supabase JWT access tokens.
"""

import base64
import json
import logging
import uuid
from typing import Annotated, Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwk, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.models.profile import Profile

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}


def get_jwks_keys(supabase_url: str) -> dict:
    """
    Fetch JWKS keys from Supabase.
    Keys are cached to avoid repeated HTTP requests.
    """
    global _jwks_cache

    if not _jwks_cache:
        try:
            jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
            response = httpx.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            _jwks_cache = response.json()
        except httpx.HTTPError as e:
            logger.error("[JWKS] Error fetching keys: %s", e)
            return {}

    return _jwks_cache


def _token_header(token: str) -> dict:
    header_segment = token.split(".")[0]
    padding = 4 - len(header_segment) % 4
    if padding != 4:
        header_segment += "=" * padding
    return json.loads(base64.urlsafe_b64decode(header_segment))


def decode_supabase_token(token: str) -> Optional[dict]:
    """
    Decode a Supabase JWT access token.
    Supports both HS256 (project JWT secret) and ES256 (JWKS) signing.
    Returns the payload, or None if the token cannot be verified.
    """
    settings = get_settings()

    try:
        header = _token_header(token)
    except (ValueError, IndexError) as e:
        logger.debug("[JWT] Error parsing header: %s", e)
        return None

    alg = header.get("alg", "HS256")
    kid = header.get("kid")

    if alg == "ES256":
        jwks = get_jwks_keys(settings.supabase_url)
        keys = jwks.get("keys", []) if jwks else []
        key_data = next((k for k in keys if kid and k.get("kid") == kid), keys[0] if keys else None)
        if key_data:
            try:
                payload = jwt.decode(
                    token,
                    jwk.construct(key_data),
                    algorithms=["ES256"],
                    options={"verify_aud": False},
                )
                return payload
            except JWTError as e:
                logger.debug("[JWT] ES256 decode error: %s", e)
        return None

    if settings.supabase_jwt_secret:
        try:
            return jwt.decode(
                token,
                settings.supabase_jwt_secret,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
        except JWTError as e:
            logger.debug("[JWT] HS256 decode error: %s", e)

    return None


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """
    Dependency to get the current authenticated user from its JWT.
    The `sub` claim is the Supabase user UUID, which is the profile id.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise credentials_exception

    payload = decode_supabase_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise credentials_exception

    try:
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, TypeError):
        raise credentials_exception

    result = await db.execute(
        select(Profile).where(Profile.id == user_id, Profile.is_active == True)  # noqa: E712
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[Profile]:
    """
    Optional authentication - returns None if no valid credentials.
    """
    if not credentials:
        return None

    try:
        return await get_current_user(credentials, db)
    except HTTPException:
        return None


def require_role(*allowed_roles: str):
    """
    Dependency factory to require specific profile roles.

    Usage:
        @router.get("/business-only")
        async def endpoint(user: Profile = Depends(require_role("business"))):
            ...
    """
    async def role_checker(
        user: Annotated[Profile, Depends(get_current_user)],
    ) -> Profile:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(allowed_roles)}",
            )
        return user

    return role_checker


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[Profile, Depends(get_current_user)]
CurrentUserOptional = Annotated[Optional[Profile], Depends(get_current_user_optional)]
BusinessUser = Annotated[Profile, Depends(require_role("business"))]
DbSession = Annotated[AsyncSession, Depends(get_db)]
