"""
Request identity resolution and role gates

Handlers receive an explicit `Identity` through FastAPI dependencies; nothing
reads the caller from module globals.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clanchain.core.database import get_db
from clanchain.core.exceptions import (AuthenticationError,
                                       PermissionDeniedError)
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.user import AppRole
from clanchain.services.auth_service import AuthService

logger = LoggingConfig.get_logger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller"""
    user_id: str
    email: str
    roles: List[str] = field(default_factory=list)
    token: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def has_role(self, role: AppRole) -> bool:
        return role.value in self.roles

    @property
    def is_superadmin(self) -> bool:
        return self.has_role(AppRole.SUPERADMIN)


def _resolve_identity(request: Request, token: str, db: Session) -> Optional[Identity]:
    auth_service = AuthService(db)
    user = auth_service.validate_session(token)
    if not user:
        return None

    identity = Identity(
        user_id=user.id,
        email=user.email,
        roles=auth_service.get_roles(user.id),
        token=token,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    LoggingConfig.set_context(user_id=identity.user_id)
    return identity


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    """
    Resolve the bearer token to an Identity

    Returns:
        Identity if the token is valid, None when no token was sent
    """
    if not credentials:
        return None
    return _resolve_identity(request, credentials.credentials, db)


async def require_identity(
    identity: Optional[Identity] = Depends(get_current_identity),
) -> Identity:
    """Require authentication: return Identity or raise 401"""
    if identity is None:
        raise AuthenticationError("Unauthorized")
    return identity


async def require_superadmin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Identity:
    """
    Gate for the superadmin surface; fails closed before any dispatch

    Raises:
        AuthenticationError: no header, or the token does not resolve to a user
        PermissionDeniedError: the user has no superadmin row in user_roles
    """
    if not credentials:
        raise AuthenticationError("No authorization header")

    identity = _resolve_identity(request, credentials.credentials, db)
    if identity is None:
        raise AuthenticationError("Unauthorized")

    # Checked against the table, not the cached role list, so revocation is immediate
    if not AuthService(db).has_role(identity.user_id, AppRole.SUPERADMIN):
        logger.warning(
            "Superadmin access denied",
            extra={"user_id": identity.user_id, "path": request.url.path},
        )
        raise PermissionDeniedError("Insufficient permissions - superadmin role required")

    return identity
