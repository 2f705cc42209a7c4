"""
FastAPI authentication dependencies.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.models import get_db, User
from app.core.caller_context import CallerContext
from app.core.error_responses import ErrorMessages, raise_unauthorized
from .ip_extraction import get_secure_client_ip
from .security import ACCESS_TOKEN_TYPE, decode_token, verify_token_type

# HTTP Bearer token scheme
security = HTTPBearer()


def _decode_and_validate_token(token: str) -> int:
    """
    Decode and validate an access token, returning the user_id.

    Raises:
        HTTPException: 401 if token is invalid, wrong type, or missing user_id
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if not verify_token_type(payload, ACCESS_TOKEN_TYPE):
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_TYPE)

    user_id = payload.get("user_id")
    if user_id is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return user_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    user_id = _decode_and_validate_token(credentials.credentials)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise_unauthorized(ErrorMessages.USER_NOT_FOUND_AUTH)
    return user


def get_caller_context(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> CallerContext:
    """
    Build the explicit caller context passed into every quiz engine operation.
    """
    return CallerContext(
        user_id=current_user.id,
        user_agent=request.headers.get("User-Agent"),
        client_ip=get_secure_client_ip(request),
    )
