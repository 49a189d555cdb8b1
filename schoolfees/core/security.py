"""Token verification and capability checks"""

from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional

from jose import JWTError, jwt

from schoolfees.config import settings
from schoolfees.models.enums import UserRole

# Capabilities gate the fees API as a whole; see api.deps.require_fee_access
FEES_READ = "fees:read"
FEES_WRITE = "fees:write"

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[str]] = {
    UserRole.SUPER_ADMIN: frozenset({FEES_READ, FEES_WRITE}),
    UserRole.ADMIN: frozenset({FEES_READ, FEES_WRITE}),
    UserRole.TEACHER: frozenset(),
    UserRole.STUDENT: frozenset(),
    UserRole.PARENT: frozenset(),
}


def capabilities_for(role: UserRole) -> FrozenSet[str]:
    """Capabilities granted to a role (empty for unknown roles)"""
    return ROLE_CAPABILITIES.get(role, frozenset())


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    The identity service is the real issuer; this mirrors its claim layout
    and is used by scripts and tests.

    Args:
        data: Claims to encode (``sub`` and ``role``)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded token payload or None if invalid
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None
