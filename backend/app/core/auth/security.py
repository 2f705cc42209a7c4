"""
JWT token utilities.

Tokens are issued by the identity service; this backend only verifies them.
`create_access_token` exists for local tooling and tests.
"""
from datetime import timedelta
import uuid

from app.core.datetime_utils import utc_now
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of data to encode in the token (typically user_id)
        expires_delta: Optional custom expiration time delta

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = utc_now()
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update(
        {"exp": expire, "iat": now, "type": ACCESS_TOKEN_TYPE, "jti": str(uuid.uuid4())}
    )
    return jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded token payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None


def verify_token_type(payload: Dict[str, Any], expected_type: str) -> bool:
    """Check that a token payload has the expected type."""
    return payload.get("type") == expected_type
