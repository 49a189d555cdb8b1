"""API Dependencies"""

from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Set
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from uuid import UUID

from schoolfees.database import get_db  # noqa: F401  re-exported for endpoints
from schoolfees.core.logging import get_logger
from schoolfees.core.security import FEES_READ, FEES_WRITE, capabilities_for, decode_token
from schoolfees.models.enums import UserRole

logger = get_logger(__name__)

# Security scheme for bearer token
security = HTTPBearer()

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Endpoints a student may call for their own student_id without fees:read
_self_service_endpoints: Set[Callable] = set()


@dataclass(frozen=True)
class Principal:
    """Caller identity taken from the access token issued by the identity service"""
    id: UUID
    role: UserRole

    @property
    def capabilities(self) -> FrozenSet[str]:
        return capabilities_for(self.role)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal:
    """
    Get the caller from the JWT bearer token.

    Raises:
        HTTPException: 401 if the token is invalid, of the wrong type or
            missing the sub/role claims
    """
    payload = decode_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Could not validate credentials")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    subject: Optional[str] = payload.get("sub")
    if not subject:
        raise _unauthorized("Could not validate credentials")

    try:
        principal_id = UUID(subject)
    except ValueError:
        raise _unauthorized("Invalid user ID")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise _unauthorized("Invalid role")

    return Principal(id=principal_id, role=role)


def self_service(endpoint: Callable) -> Callable:
    """Let a student read this endpoint when its student_id path parameter is their own id."""
    _self_service_endpoints.add(endpoint)
    return endpoint


def _is_own_record(request: Request, principal: Principal) -> bool:
    if principal.role != UserRole.STUDENT:
        return False
    if request.scope.get("endpoint") not in _self_service_endpoints:
        return False
    return request.path_params.get("student_id") == str(principal.id)


async def require_fee_access(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """
    Router-level capability check for the whole fees API.

    Reads need fees:read and every other method needs fees:write.
    """
    required = FEES_READ if request.method in SAFE_METHODS else FEES_WRITE
    if principal.can(required):
        return principal
    if required == FEES_READ and _is_own_record(request, principal):
        return principal

    logger.warning(
        "Fee access denied",
        extra={
            "actor_id": principal.id,
            "role": principal.role.value,
            "capability": required,
            "path": request.url.path,
        },
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not enough permissions",
    )
