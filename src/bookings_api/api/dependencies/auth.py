import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from bookings_api.domain.entities import Actor
from bookings_api.domain.enums import ActorRole
from bookings_api.shared.config.settings import Settings, settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

CALLER_ROLES = frozenset({ActorRole.CUSTOMER, ActorRole.PRO})


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", settings)


def _role_claim(payload: dict[str, Any]) -> str | None:
    role = payload.get("role")
    if isinstance(role, str) and role in CALLER_ROLES:
        return role
    for key in ("app_metadata", "user_metadata"):
        metadata = payload.get(key)
        if isinstance(metadata, dict) and isinstance(metadata.get("role"), str):
            return metadata["role"]
    return role if isinstance(role, str) else None


def decode_actor(token: str, app_settings: Settings) -> Actor:
    """Decode a bearer token into the calling actor.

    Raises ``HTTPException`` 401 for bad tokens and 403 for roles that may not
    act on bookings.
    """
    options = {"verify_aud": bool(app_settings.jwt_audience)}
    try:
        payload = jwt.decode(
            token,
            app_settings.jwt_secret,
            algorithms=[app_settings.jwt_algorithm],
            audience=app_settings.jwt_audience or None,
            options=options,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )
    role = _role_claim(payload)
    if role not in CALLER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token role is not allowed to act on bookings",
        )
    return Actor(user_id=subject, role=ActorRole(role))


def get_current_actor(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    app_settings = get_settings(request)
    if not app_settings.jwt_secret:
        logger.error("jwt_secret_not_configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )

    token = None
    if creds and creds.scheme.lower() == "bearer":
        token = creds.credentials
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = decode_actor(token, app_settings)
    request.state.user_id = actor.user_id
    return actor


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
